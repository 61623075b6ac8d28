"""
Yangon Reminder Bot — Reminder command parsing.

Turns the arguments of /remind, /daily, /weekdays and /weekly into a
ReminderRequest, and those of /adddate into a DateRequest. Times may be
12-hour ("9am", "9:30 pm") or 24-hour ("21:30"); weekdays accept full and
short English names; dates are "MM-DD" with an optional year.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from src.data.models import DateType, Recurrence

WEEKDAYS: dict[str, int] = {
    "sunday": 0, "sun": 0,
    "monday": 1, "mon": 1,
    "tuesday": 2, "tue": 2, "tues": 2,
    "wednesday": 3, "wed": 3,
    "thursday": 4, "thu": 4, "thur": 4, "thurs": 4,
    "friday": 5, "fri": 5,
    "saturday": 6, "sat": 6,
}

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

_TIME_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$")


class ReminderParseError(ValueError):
    """Raised with a user-facing message when reminder arguments are invalid."""


@dataclass
class ReminderRequest:
    """Parsed reminder arguments, ready for TaskDB.add_task."""

    text: str
    hour: int
    minute: int
    recurrence: Recurrence
    weekday: int | None = None


def parse_time(time_str: str) -> tuple[int, int] | None:
    """Parse "9", "9am", "9:30 pm" or "21:30" into (hour, minute).

    Returns None if the input isn't a valid time.
    """
    match = _TIME_RE.match(time_str.strip().lower())
    if not match:
        return None

    hour = int(match.group(1))
    minute = int(match.group(2)) if match.group(2) else 0
    period = match.group(3)

    if minute > 59:
        return None
    if period:
        if not 1 <= hour <= 12:
            return None
        if period == "pm" and hour != 12:
            hour += 12
        elif period == "am" and hour == 12:
            hour = 0
    elif hour > 23:
        return None
    return hour, minute


def extract_weekday(text: str) -> tuple[int, str] | None:
    """Find the first weekday name in ``text``. Returns (weekday, matched_name)."""
    lower = text.lower()
    best: tuple[int, int, str] | None = None
    for name, day in WEEKDAYS.items():
        match = re.search(rf"\b{name}\b", lower)
        if match and (best is None or match.start() < best[0]):
            best = (match.start(), day, name)
    if best is None:
        return None
    return best[1], best[2]


def get_day_name(weekday: int) -> str:
    if 0 <= weekday < len(WEEKDAY_NAMES):
        return WEEKDAY_NAMES[weekday]
    return ""


def _split_time(args: list[str]) -> tuple[tuple[int, int], list[str]]:
    """Consume a time from the front of ``args``; "9:30 pm" may span two tokens."""
    if not args:
        raise ReminderParseError("Please give a time, e.g. 9:30am or 21:30.")
    if len(args) >= 2 and args[1].lower() in ("am", "pm"):
        parsed = parse_time(f"{args[0]}{args[1]}")
        rest = args[2:]
    else:
        parsed = parse_time(args[0])
        rest = args[1:]
    if parsed is None:
        raise ReminderParseError(f"Invalid time: {args[0]}. Use e.g. 9:30am or 21:30.")
    return parsed, rest


def parse_reminder_args(args: list[str], recurrence: Recurrence) -> ReminderRequest:
    """Parse command arguments for a reminder of the given recurrence.

    Weekly reminders expect the weekday first: ``friday 5pm Team drinks``.
    """
    args = [a for a in args if a.strip()]
    weekday: int | None = None

    if recurrence is Recurrence.WEEKLY:
        if not args:
            raise ReminderParseError("Please give a weekday, e.g. /weekly friday 5pm Report")
        found = WEEKDAYS.get(args[0].lower())
        if found is None:
            raise ReminderParseError(f"Unknown weekday: {args[0]}")
        weekday = found
        args = args[1:]

    (hour, minute), rest = _split_time(args)
    text = " ".join(rest).strip(" :")
    if not text:
        raise ReminderParseError("Please add the reminder text after the time.")

    return ReminderRequest(
        text=text,
        hour=hour,
        minute=minute,
        recurrence=recurrence,
        weekday=weekday,
    )


def format_time_12h(hour: int, minute: int) -> str:
    """(21, 5) -> "9:05 PM"."""
    period = "AM" if hour < 12 else "PM"
    display = hour % 12 or 12
    return f"{display}:{minute:02d} {period}"


# ---------------------------------------------------------------------------
# Personal dates
# ---------------------------------------------------------------------------

ADDDATE_USAGE = (
    "Use: /adddate <MM-DD> [YYYY] <name>\n\n"
    "Examples:\n"
    "• /adddate 12-25 Christmas\n"
    "• /adddate 03-15 1990 My Birthday\n"
    "• /adddate 08-20 2020 Anniversary"
)

_DATE_ARGS_RE = re.compile(r"^(\d{1,2})[-/](\d{1,2})\s+(?:(\d{4})\s+)?(.+)$")

# Pictographs, dingbats and misc symbols, with their joiners and variation selector
_EMOJI_RE = re.compile("[\U0001F000-\U0001FAFF\u2600-\u27BF\u2B00-\u2BFF\u200D\uFE0F]+")


class DateParseError(ValueError):
    """Raised with a user-facing message when /adddate arguments are invalid."""


@dataclass
class DateRequest:
    """Parsed /adddate arguments, ready for PersonalDateDB.add_date."""

    name: str
    month: int
    day: int
    year: int | None = None
    type: DateType = DateType.CUSTOM
    emoji: str = "📅"


def detect_date_type(name: str) -> DateType:
    lower = name.lower()
    if "birth" in lower:
        return DateType.BIRTHDAY
    if "anniversary" in lower:
        return DateType.ANNIVERSARY
    if "milestone" in lower:
        return DateType.MILESTONE
    return DateType.CUSTOM


def split_emoji(name: str) -> tuple[str, str]:
    """Pull emoji out of a name. Returns (clean_name, emoji); emoji defaults to 📅."""
    emoji = "".join(_EMOJI_RE.findall(name))
    clean = " ".join(_EMOJI_RE.sub(" ", name).split())
    return clean, emoji or "📅"


def parse_date_args(args: list[str]) -> DateRequest:
    """Parse ``/adddate 03-15 1990 My Birthday 🎂``.

    Range checks (valid day, year, name length) are left to the store.
    """
    text = " ".join(a for a in args if a.strip())
    match = _DATE_ARGS_RE.match(text)
    if not match:
        raise DateParseError(f"Invalid format.\n\n{ADDDATE_USAGE}")

    raw_name = match.group(4).strip()
    name, emoji = split_emoji(raw_name)
    return DateRequest(
        name=name,
        month=int(match.group(1)),
        day=int(match.group(2)),
        year=int(match.group(3)) if match.group(3) else None,
        type=detect_date_type(raw_name),
        emoji=emoji,
    )
