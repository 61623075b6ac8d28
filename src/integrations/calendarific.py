"""Calendarific API integration — public holiday sync.

Fetches one country's holidays for a year and stores them in HolidayDB.
Failures are raised as HolidaySyncError carrying a message that can be
shown to the user as-is.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

import httpx

from src.data.models import Holiday

if TYPE_CHECKING:
    from src.data.db import HolidayDB

logger = logging.getLogger(__name__)

_BASE_URL = "https://calendarific.com/api/v2"
_TIMEOUT_SECONDS = 30


class HolidaySyncError(Exception):
    """Raised when holidays can't be fetched. ``str(exc)`` is user-facing."""


def _parse_holiday(raw: dict, country: str) -> Holiday | None:
    iso = raw.get("date", {}).get("iso", "")
    # Timed holidays come as full datetimes, e.g. "2026-03-20T17:31:00+06:30"
    date_part = iso[:10]
    try:
        year, month, day = (int(p) for p in date_part.split("-"))
    except ValueError:
        logger.warning("Skipping holiday with bad date: %r", iso)
        return None

    types = raw.get("type") or []
    return Holiday(
        name=raw.get("name", "").strip() or "(unnamed)",
        description=raw.get("description", "") or "",
        date=date_part,
        year=year,
        month=month,
        day=day,
        type=types[0] if types else "national",
        country=country,
    )


async def fetch_holidays(year: int, api_key: str, country: str = "MM") -> list[Holiday]:
    """Fetch all holidays for ``country`` in ``year`` from Calendarific."""
    if not api_key:
        raise HolidaySyncError("Holiday API key not configured.")

    try:
        async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
            resp = await client.get(
                f"{_BASE_URL}/holidays",
                params={"api_key": api_key, "country": country, "year": year},
            )
            resp.raise_for_status()
            data = resp.json()
    except httpx.TimeoutException as exc:
        logger.error("Calendarific timeout: %s", exc)
        raise HolidaySyncError("Request timed out. Please try again.") from exc
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        logger.error("Calendarific HTTP %d: %s", status, exc)
        if status == 401:
            message = "Invalid API key. Please check your configuration."
        elif status == 429:
            message = "Too many requests. Please try again later."
        elif status >= 500:
            message = "Calendarific server error. Please try again later."
        else:
            message = "Failed to fetch holidays."
        raise HolidaySyncError(message) from exc
    except httpx.RequestError as exc:
        logger.error("Calendarific network error: %s", exc)
        raise HolidaySyncError("Network error. Please check your internet connection.") from exc

    raw_holidays = (data.get("response") or {}).get("holidays") or []
    holidays = [h for h in (_parse_holiday(r, country) for r in raw_holidays) if h is not None]
    logger.info("Fetched %d holidays from Calendarific for %d", len(holidays), year)
    return holidays


async def sync_year(db: HolidayDB, year: int, api_key: str, country: str = "MM") -> int:
    """Fetch ``year`` into ``db``, dropping older years. Returns the number of new rows."""
    holidays = await fetch_holidays(year, api_key, country)
    added = db.add_holidays(holidays)
    db.delete_before_year(year)
    logger.info("Synced %d: %d new holidays added", year, added)
    return added


async def check_api_health(api_key: str, country: str = "MM", year: int | None = None) -> bool:
    """Whether Calendarific answers a holiday query with this key. Never raises."""
    if year is None:
        year = datetime.now().year
    try:
        await fetch_holidays(year, api_key, country)
    except HolidaySyncError as exc:
        logger.warning("Calendarific health check failed: %s", exc)
        return False
    return True
