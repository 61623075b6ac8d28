"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides common fixtures like temp DBs and in-memory fakes.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("DEFAULT_TIMEZONE", "Asia/Yangon")
os.environ.setdefault("CALENDARIFIC_API_KEY", "")

from unittest.mock import AsyncMock

import pytest


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_reminders.db")


@pytest.fixture
def task_db(tmp_db_path):
    """Return a TaskDB instance backed by a temp file."""
    from src.data.db import TaskDB
    return TaskDB(db_path=tmp_db_path)


@pytest.fixture
def user_db(tmp_db_path):
    """Return a UserDB instance backed by the same temp file."""
    from src.data.db import UserDB
    return UserDB(db_path=tmp_db_path)


@pytest.fixture
def holiday_db(tmp_path):
    """Return a HolidayDB instance backed by a temp file."""
    from src.data.db import HolidayDB
    return HolidayDB(db_path=str(tmp_path / "test_holidays.db"), country="MM")


@pytest.fixture
def date_db(tmp_db_path):
    """Return a PersonalDateDB instance backed by the shared temp file."""
    from src.data.db import PersonalDateDB
    return PersonalDateDB(db_path=tmp_db_path)


class FakeTaskStore:
    """In-memory TaskStore."""

    def __init__(self, tasks=None):
        self.tasks = {t.id: t for t in (tasks or [])}
        self.deactivated: list[int] = []

    def list_active(self):
        return [t for t in self.tasks.values() if t.active]

    def deactivate(self, task_id):
        self.deactivated.append(task_id)
        task = self.tasks.get(task_id)
        if task is None or not task.active:
            return False
        task.active = False
        return True


class FakeUserStore:
    """In-memory UserPreferenceStore."""

    def __init__(self, timezones=None):
        self.timezones = dict(timezones or {})

    def get_timezone(self, owner):
        return self.timezones.get(owner)

    def list_owners(self):
        return list(self.timezones)


class FakeHolidaySource:
    def __init__(self, holidays=None):
        # {(month, day): [names]}
        self.holidays = dict(holidays or {})
        self.calls = 0

    def holidays_on(self, month, day, year=None):
        self.calls += 1
        return list(self.holidays.get((month, day), []))


class FakeMonotonic:
    """Manually advanced monotonic clock for expiring-set tests."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def notifier():
    mock = AsyncMock()
    mock.send_message = AsyncMock()
    mock.send_holiday_digest = AsyncMock()
    return mock


@pytest.fixture
def monotonic():
    return FakeMonotonic()
