"""
Yangon Reminder Bot — Quiet hours.

A local-time window during which reminders are not sent. The start is
inclusive and the end exclusive, so the default 00:05–06:30 window keeps
00:05 and 06:29 quiet while 00:03 and 06:30 are not.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time


@dataclass(frozen=True)
class QuietHours:
    """Suppression window in the owner's local time.

    ``start > end`` wraps past midnight (e.g. 22:00–07:00).
    ``start == end`` disables quiet hours.
    """

    start: time
    end: time

    @classmethod
    def parse(cls, start: str, end: str) -> QuietHours:
        """Build from "HH:MM" strings. Raises ValueError on bad input."""
        return cls(
            start=datetime.strptime(start.strip(), "%H:%M").time(),
            end=datetime.strptime(end.strip(), "%H:%M").time(),
        )

    @classmethod
    def from_settings(cls) -> QuietHours:
        from src.config import settings

        return cls.parse(settings.QUIET_HOURS_START, settings.QUIET_HOURS_END)

    def is_quiet(self, hour: int, minute: int) -> bool:
        t = hour * 60 + minute
        start = self.start.hour * 60 + self.start.minute
        end = self.end.hour * 60 + self.end.minute

        if start == end:
            return False
        if start < end:
            return start <= t < end
        return t >= start or t < end

    def __str__(self) -> str:
        return f"{self.start:%H:%M}–{self.end:%H:%M}"
