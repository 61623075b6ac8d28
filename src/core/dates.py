"""
Yangon Reminder Bot — Calendar-day helpers for /today and /adddate.

Day countdowns to yearly dates, ages and anniversaries, and the moon phase
shown in the /today header. All functions take the caller's local date.
"""

from __future__ import annotations

from datetime import date

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

SHORT_WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

_MOON_PHASES = [
    ("🌑", "New Moon"),
    ("🌒", "Waxing Crescent"),
    ("🌓", "First Quarter"),
    ("🌔", "Waxing Gibbous"),
    ("🌕", "Full Moon"),
    ("🌖", "Waning Gibbous"),
    ("🌗", "Last Quarter"),
    ("🌘", "Waning Crescent"),
]

# Reference new moon: 2000-01-06 18:14 UTC
_KNOWN_NEW_MOON = date(2000, 1, 6)
_KNOWN_NEW_MOON_DAY_FRACTION = (18 * 60 + 14) / (24 * 60)
_LUNATION_DAYS = 29.53058867


def short_month_name(month: int) -> str:
    return MONTH_NAMES[month - 1][:3]


def occurrence_in_year(month: int, day: int, year: int) -> date:
    """The date a yearly (month, day) falls on in ``year``; Feb 29 → Mar 1 outside leap years."""
    try:
        return date(year, month, day)
    except ValueError:
        if (month, day) == (2, 29):
            return date(year, 3, 1)
        raise


def days_until(month: int, day: int, today: date) -> int:
    """Days from ``today`` to the next (month, day), 0 when it is today."""
    target = occurrence_in_year(month, day, today.year)
    if target < today:
        target = occurrence_in_year(month, day, today.year + 1)
    return (target - today).days


def format_day_countdown(days: int) -> str:
    """0 -> "🎉 Today!", 10 -> "1 week", 400 -> "1y 1m"."""
    if days == 0:
        return "🎉 Today!"
    if days == 1:
        return "Tomorrow"
    if days < 7:
        return f"{days} days"
    if days < 30:
        weeks = days // 7
        return "1 week" if weeks == 1 else f"{weeks} weeks"
    if days < 365:
        months = days // 30
        return "1 month" if months == 1 else f"{months} months"
    years, rem = divmod(days, 365)
    months = rem // 30
    if months == 0:
        return "1 year" if years == 1 else f"{years} years"
    return f"{years}y {months}m"


def format_age(birth_year: int, year: int) -> str | None:
    age = year - birth_year
    if age < 0:
        return None
    if age == 0:
        return "Just born"
    if age == 1:
        return "1 year old"
    return f"{age} years old"


def format_years_together(start_year: int, year: int) -> str | None:
    years = year - start_year
    if years < 0:
        return None
    if years == 0:
        return "Just started"
    if years == 1:
        return "1 year together"
    return f"{years} years together"


def moon_phase(day: date) -> tuple[str, str]:
    """Approximate moon phase at local midnight of ``day`` as (emoji, name)."""
    elapsed = (day - _KNOWN_NEW_MOON).days - _KNOWN_NEW_MOON_DAY_FRACTION
    age = (elapsed / _LUNATION_DAYS) % 1.0
    return _MOON_PHASES[int(age * 8 + 0.5) % 8]
