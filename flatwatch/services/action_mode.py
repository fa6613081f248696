# flatwatch/services/action_mode.py
from __future__ import annotations

import logging
import threading

from ..domain.types import ActionMode

log = logging.getLogger(__name__)


class ActionModeController:
    """
    Process-wide action mode. Written by the command surface (chat commands,
    HTTP API), read by the scheduler once per decision.

    Every transition between off/preview/on is allowed. Last write wins.
    """

    def __init__(self, initial: ActionMode | str = ActionMode.off) -> None:
        self._lock = threading.Lock()
        self._mode = ActionMode(initial)

    def current(self) -> ActionMode:
        with self._lock:
            return self._mode

    def set(self, mode: ActionMode | str) -> ActionMode:
        """Returns the previous mode."""
        new = ActionMode(mode)
        with self._lock:
            prev = self._mode
            self._mode = new
        if prev != new:
            log.info("action mode changed %s -> %s", prev.value, new.value)
        return prev
