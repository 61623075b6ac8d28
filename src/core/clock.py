"""
Yangon Reminder Bot — Timezone resolution.

Two levels of strictness:

- ``resolve_zone`` / ``local_now`` are used by the scheduler and never raise.
  A bad stored value falls back to the default zone (then UTC) so one user's
  data can't stop reminders for everyone else.
- ``ValidatedZone.parse`` is used when a user sets their timezone and rejects
  anything that isn't in the IANA database.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")

# Offered as buttons by /timezone. Any valid IANA name is accepted as text.
SUPPORTED_TIMEZONES: list[tuple[str, str]] = [
    ("🇲🇲 Myanmar", "Asia/Yangon"),
    ("🇲🇾 Malaysia", "Asia/Kuala_Lumpur"),
    ("🇸🇬 Singapore", "Asia/Singapore"),
    ("🇹🇭 Thailand", "Asia/Bangkok"),
    ("🇮🇳 India", "Asia/Kolkata"),
    ("🇨🇳 China", "Asia/Shanghai"),
    ("🇯🇵 Japan", "Asia/Tokyo"),
    ("🇰🇷 Korea", "Asia/Seoul"),
    ("🇭🇰 Hong Kong", "Asia/Hong_Kong"),
    ("🇦🇺 Australia", "Australia/Sydney"),
    ("🇳🇿 New Zealand", "Pacific/Auckland"),
    ("🇬🇧 UK", "Europe/London"),
    ("🇪🇺 Europe", "Europe/Paris"),
    ("🇺🇸 New York", "America/New_York"),
    ("🇺🇸 LA", "America/Los_Angeles"),
    ("🇦🇪 Dubai", "Asia/Dubai"),
    ("🌏 UTC", "UTC"),
]


class InvalidTimezoneError(ValueError):
    """Raised when a user-supplied timezone name is not a known IANA zone."""


@dataclass(frozen=True)
class ValidatedZone:
    """A timezone name that has been checked against the tz database."""

    name: str

    @classmethod
    def parse(cls, name: str) -> ValidatedZone:
        name = (name or "").strip()
        if not name:
            raise InvalidTimezoneError("Timezone name is empty")
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
            raise InvalidTimezoneError(f"Unknown timezone: {name}") from exc
        return cls(name)

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.name)


def _load_zone(name: str | None) -> ZoneInfo | None:
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return None


def resolve_zone(name: str | None, default: str | None = None) -> ZoneInfo:
    """Return the zone for ``name``, falling back to ``default`` and then UTC."""
    zone = _load_zone(name)
    if zone is not None:
        return zone
    if name:
        logger.warning("Unknown timezone %r, falling back to %s", name, default or "UTC")
    return _load_zone(default) or UTC


def local_now(
    name: str | None,
    now: datetime | None = None,
    default: str | None = None,
) -> datetime:
    """Current wall-clock time in ``name`` as an aware datetime.

    ``now`` may be any aware datetime (tests pass a fixed instant); naive
    values are taken to be UTC.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(resolve_zone(name, default))


def sunday_weekday(dt: datetime) -> int:
    """Weekday with Sunday=0 … Saturday=6."""
    return (dt.weekday() + 1) % 7


def format_timezone_label(name: str) -> str:
    for label, zone in SUPPORTED_TIMEZONES:
        if zone == name:
            return label
    return name
