"""
Yangon Reminder Bot — Data Models.

Reminders and timezone preferences persist in SQLite, surviving bot restarts.
Holidays are a local copy of the Calendarific feed, refreshed by /syncholidays.
Personal dates are yearly events each chat tracks for /today.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Recurrence(str, Enum):
    """How often a reminder fires."""

    ONCE = "once"
    DAILY = "daily"
    WEEKDAYS = "weekdays"   # Monday–Friday
    WEEKLY = "weekly"       # one specific weekday

    @classmethod
    def parse(cls, value: str) -> Recurrence:
        # "specific" is the legacy name for weekly-on-a-weekday
        if value == "specific":
            return cls.WEEKLY
        return cls(value)


@dataclass
class Task:
    """A reminder definition owned by one chat.

    ``hour``/``minute`` are wall-clock values in the owner's timezone.
    ``weekday`` uses Sunday=0 and is only meaningful for weekly reminders.
    """

    id: int
    owner: int
    text: str
    hour: int
    minute: int
    recurrence: Recurrence = Recurrence.ONCE
    weekday: int | None = None
    active: bool = field(default=True)
    created_at: str = ""


def validate_task_fields(
    text: str,
    hour: int,
    minute: int,
    recurrence: Recurrence,
    weekday: int | None,
) -> None:
    """Raise ValueError if the fields don't describe a valid reminder."""
    if not text or not text.strip():
        raise ValueError("Reminder text must not be empty")
    if not 0 <= hour <= 23:
        raise ValueError(f"hour must be in 0..23, got {hour}")
    if not 0 <= minute <= 59:
        raise ValueError(f"minute must be in 0..59, got {minute}")
    if recurrence is Recurrence.WEEKLY:
        if weekday is None or not 0 <= weekday <= 6:
            raise ValueError(f"weekly reminders need a weekday in 0..6, got {weekday}")


@dataclass
class User:
    """A chat that has talked to the bot, with its timezone preference."""

    owner: int
    timezone: str | None = None   # None → settings.DEFAULT_TIMEZONE
    created_at: str = ""


@dataclass
class Holiday:
    """A public holiday on a specific date."""

    name: str
    date: str            # ISO date YYYY-MM-DD
    year: int
    month: int
    day: int
    description: str = ""
    type: str = "national"
    country: str = "MM"


class DateType(str, Enum):
    """Kind of personal date; decides whether /today shows an age or a years-together count."""

    BIRTHDAY = "birthday"
    ANNIVERSARY = "anniversary"
    CUSTOM = "custom"
    MILESTONE = "milestone"


@dataclass
class PersonalDate:
    """A yearly date one chat wants to keep track of (birthday, anniversary...).

    ``year`` is the birth or start year, used for ages and anniversaries.
    """

    id: int
    owner: int
    name: str
    month: int
    day: int
    year: int | None = None
    type: DateType = DateType.CUSTOM
    emoji: str = "📅"
    created_at: str = ""


# Feb 29 is accepted; in other years it is celebrated on Mar 1
_DAYS_IN_MONTH = [31, 29, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]


def is_valid_month_day(month: int, day: int) -> bool:
    return 1 <= month <= 12 and 1 <= day <= _DAYS_IN_MONTH[month - 1]


def validate_personal_date_fields(name: str, month: int, day: int, year: int | None) -> None:
    """Raise ValueError if the fields don't describe a valid personal date."""
    if not name or len(name.strip()) < 2:
        raise ValueError("Name must be at least 2 characters.")
    if not is_valid_month_day(month, day):
        raise ValueError("Invalid date. Please check month and day.")
    if year is not None and not 1900 <= year <= 2100:
        raise ValueError("Invalid year. Use 1900-2100.")
