import threading

import pytest

from flatwatch.domain.types import ActionMode
from flatwatch.services.action_mode import ActionModeController


def test_default_is_off_and_all_transitions_allowed():
    m = ActionModeController()
    assert m.current() is ActionMode.off

    for target in (ActionMode.on, ActionMode.preview, ActionMode.off, ActionMode.preview, ActionMode.on):
        m.set(target)
        assert m.current() is target


def test_set_returns_previous_and_accepts_strings():
    m = ActionModeController("preview")
    assert m.set("on") is ActionMode.preview
    assert m.current() is ActionMode.on


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        ActionModeController().set("maybe")


def test_concurrent_writers_last_write_wins():
    m = ActionModeController()
    modes = [ActionMode.on, ActionMode.preview, ActionMode.off] * 50

    threads = [threading.Thread(target=m.set, args=(x,)) for x in modes]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert m.current() in (ActionMode.on, ActionMode.preview, ActionMode.off)
