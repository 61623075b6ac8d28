"""Tests for src.integrations.calendarific — holiday sync."""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from src.integrations.calendarific import (
    HolidaySyncError,
    check_api_health,
    fetch_holidays,
    sync_year,
)


def _mock_client(resp=None, side_effect=None):
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client.get = AsyncMock(return_value=resp, side_effect=side_effect)
    return mock_client


def _ok_response(holidays):
    mock_resp = MagicMock()
    mock_resp.json.return_value = {"meta": {"code": 200}, "response": {"holidays": holidays}}
    mock_resp.raise_for_status = MagicMock()
    return mock_resp


def _status_error(status):
    request = httpx.Request("GET", "https://calendarific.com/api/v2/holidays")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


_RAW = [
    {
        "name": "Union Day",
        "description": "Union Day is a public holiday in Myanmar",
        "date": {"iso": "2026-02-12"},
        "type": ["National holiday"],
    },
    {
        "name": "March Equinox",
        "date": {"iso": "2026-03-20T20:16:00+06:30"},
        "type": ["Season"],
    },
    {"name": "Broken", "date": {"iso": "not-a-date"}},
]


class TestFetchHolidays:
    @pytest.mark.asyncio
    async def test_parses_holidays(self):
        client = _mock_client(_ok_response(_RAW))
        with patch("src.integrations.calendarific.httpx.AsyncClient", return_value=client):
            holidays = await fetch_holidays(2026, "fake-key")

        assert [h.name for h in holidays] == ["Union Day", "March Equinox"]
        union = holidays[0]
        assert (union.year, union.month, union.day) == (2026, 2, 12)
        assert union.type == "National holiday"
        assert union.country == "MM"
        assert holidays[1].date == "2026-03-20"

        _, kwargs = client.get.call_args
        assert kwargs["params"] == {"api_key": "fake-key", "country": "MM", "year": 2026}

    @pytest.mark.asyncio
    async def test_missing_key(self):
        with pytest.raises(HolidaySyncError, match="not configured"):
            await fetch_holidays(2026, "")

    @pytest.mark.asyncio
    async def test_empty_response(self):
        resp = MagicMock()
        resp.json.return_value = {"response": []}
        resp.raise_for_status = MagicMock()
        with patch("src.integrations.calendarific.httpx.AsyncClient", return_value=_mock_client(resp)):
            assert await fetch_holidays(2026, "fake-key") == []

    @pytest.mark.asyncio
    async def test_timeout(self):
        client = _mock_client(side_effect=httpx.ReadTimeout("slow"))
        with patch("src.integrations.calendarific.httpx.AsyncClient", return_value=client):
            with pytest.raises(HolidaySyncError, match="timed out"):
                await fetch_holidays(2026, "fake-key")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,message", [
        (401, "Invalid API key"),
        (429, "Too many requests"),
        (503, "server error"),
        (404, "Failed to fetch"),
    ])
    async def test_http_errors(self, status, message):
        resp = MagicMock()
        resp.raise_for_status = MagicMock(side_effect=_status_error(status))
        with patch("src.integrations.calendarific.httpx.AsyncClient", return_value=_mock_client(resp)):
            with pytest.raises(HolidaySyncError, match=message):
                await fetch_holidays(2026, "fake-key")

    @pytest.mark.asyncio
    async def test_network_error(self):
        client = _mock_client(side_effect=httpx.ConnectError("no route"))
        with patch("src.integrations.calendarific.httpx.AsyncClient", return_value=client):
            with pytest.raises(HolidaySyncError, match="Network error"):
                await fetch_holidays(2026, "fake-key")


class TestSyncYear:
    @pytest.mark.asyncio
    async def test_stores_and_prunes(self, holiday_db):
        from src.data.models import Holiday

        holiday_db.add_holidays([
            Holiday(name="Old", date="2025-01-04", year=2025, month=1, day=4),
        ])
        client = _mock_client(_ok_response(_RAW))
        with patch("src.integrations.calendarific.httpx.AsyncClient", return_value=client):
            added = await sync_year(holiday_db, 2026, "fake-key")

        assert added == 2
        assert holiday_db.count_year(2025) == 0
        assert holiday_db.holidays_on(2, 12, year=2026) == ["Union Day"]

    @pytest.mark.asyncio
    async def test_resync_adds_nothing(self, holiday_db):
        client = _mock_client(_ok_response(_RAW))
        with patch("src.integrations.calendarific.httpx.AsyncClient", return_value=client):
            await sync_year(holiday_db, 2026, "fake-key")
            added = await sync_year(holiday_db, 2026, "fake-key")

        assert added == 0
        assert holiday_db.count_year(2026) == 2

    @pytest.mark.asyncio
    async def test_failure_leaves_db_untouched(self, holiday_db):
        from src.data.models import Holiday

        holiday_db.add_holidays([
            Holiday(name="Old", date="2025-01-04", year=2025, month=1, day=4),
        ])
        client = _mock_client(side_effect=httpx.ConnectError("no route"))
        with patch("src.integrations.calendarific.httpx.AsyncClient", return_value=client):
            with pytest.raises(HolidaySyncError):
                await sync_year(holiday_db, 2026, "fake-key")

        assert holiday_db.count_year(2025) == 1


class TestCheckApiHealth:
    @pytest.mark.asyncio
    async def test_healthy(self):
        client = _mock_client(_ok_response(_RAW))
        with patch("src.integrations.calendarific.httpx.AsyncClient", return_value=client):
            assert await check_api_health("fake-key", year=2026) is True

    @pytest.mark.asyncio
    async def test_failure_is_false_not_raised(self):
        resp = MagicMock()
        resp.raise_for_status = MagicMock(side_effect=_status_error(401))
        with patch("src.integrations.calendarific.httpx.AsyncClient", return_value=_mock_client(resp)):
            assert await check_api_health("bad-key", year=2026) is False

    @pytest.mark.asyncio
    async def test_missing_key(self):
        assert await check_api_health("") is False
