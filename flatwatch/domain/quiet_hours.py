# flatwatch/domain/quiet_hours.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, time, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigError

log = logging.getLogger(__name__)


def parse_hhmm(s: str) -> time:
    try:
        hh, mm = s.strip().split(":", 1)
        return time(hour=int(hh), minute=int(mm))
    except (ValueError, AttributeError) as e:
        raise ConfigError(f"invalid HH:MM time {s!r}") from e


def load_zone(name: str | None) -> tzinfo:
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        log.warning("unknown time zone %r, falling back to UTC", name)
        return timezone.utc


def in_window(current: time, start: time, end: time) -> bool:
    """
    [start, end) on a 24h clock. start > end wraps past midnight.
    start == end is an empty window.
    """
    now_m = current.hour * 60 + current.minute
    start_m = start.hour * 60 + start.minute
    end_m = end.hour * 60 + end.minute

    if start_m > end_m:
        return now_m >= start_m or now_m < end_m
    return start_m <= now_m < end_m


@dataclass(frozen=True)
class QuietHours:
    start: time
    end: time
    tz: tzinfo = timezone.utc
    enabled: bool = True

    @classmethod
    def from_strings(cls, start: str, end: str, tz: str | None = None, enabled: bool = True) -> "QuietHours":
        return cls(start=parse_hhmm(start), end=parse_hhmm(end), tz=load_zone(tz), enabled=enabled)

    @classmethod
    def from_settings(cls) -> "QuietHours":
        from ..config import settings

        return cls.from_strings(
            settings.QUIET_HOURS_START,
            settings.QUIET_HOURS_END,
            settings.QUIET_HOURS_TZ,
            enabled=settings.QUIET_HOURS_ENABLED,
        )

    def is_quiet(self, now: datetime | None = None) -> bool:
        if not self.enabled:
            return False
        if now is None:
            now = datetime.now(self.tz)
        elif now.tzinfo is not None:
            now = now.astimezone(self.tz)
        # naive datetimes are taken as already local to the configured zone
        return in_window(now.time(), self.start, self.end)
