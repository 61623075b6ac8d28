"""
Yangon Reminder Bot — SQLite storage.

Reminders, user timezone preferences, personal dates and the local holiday
calendar persist in SQLite across restarts. The scheduler only reads tasks and
users, plus the single-field "deactivate" write after a one-time reminder fires.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from src.data.models import (
    DateType,
    Holiday,
    PersonalDate,
    Recurrence,
    Task,
    User,
    validate_personal_date_fields,
    validate_task_fields,
)

logger = logging.getLogger(__name__)


class _SQLiteDB:
    """Shared connection handling for the per-table stores."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from src.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        raise NotImplementedError


class TaskDB(_SQLiteDB):
    """SQLite-backed storage for reminder tasks. Implements TaskStore."""

    def _init_db(self) -> None:
        """Create the tasks table if it doesn't exist, and migrate schema."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner       INTEGER NOT NULL,
                    text        TEXT    NOT NULL,
                    hour        INTEGER NOT NULL,
                    minute      INTEGER NOT NULL,
                    recurrence  TEXT    NOT NULL DEFAULT 'once',
                    weekday     INTEGER,
                    active      INTEGER NOT NULL DEFAULT 1,
                    created_at  TEXT    NOT NULL DEFAULT ''
                )
            """)
            # Migrate DBs created before created_at existed
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(tasks)").fetchall()
            }
            if "created_at" not in existing_cols:
                conn.execute(
                    "ALTER TABLE tasks ADD COLUMN created_at TEXT NOT NULL DEFAULT ''"
                )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_owner_active ON tasks (owner, active)"
            )
        logger.debug("Tasks table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=row["id"],
            owner=row["owner"],
            text=row["text"],
            hour=row["hour"],
            minute=row["minute"],
            recurrence=Recurrence.parse(row["recurrence"]),
            weekday=row["weekday"],
            active=bool(row["active"]),
            created_at=row["created_at"],
        )

    def add_task(
        self,
        owner: int,
        text: str,
        hour: int,
        minute: int,
        recurrence: Recurrence = Recurrence.ONCE,
        weekday: int | None = None,
    ) -> Task:
        """Insert a new active reminder. Raises ValueError on invalid fields."""
        text = text.strip()
        validate_task_fields(text, hour, minute, recurrence, weekday)
        if recurrence is not Recurrence.WEEKLY:
            weekday = None

        now = datetime.now().isoformat()
        with self._connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO tasks
                    (owner, text, hour, minute, recurrence, weekday, active, created_at)
                VALUES (?, ?, ?, ?, ?, ?, 1, ?)
                """,
                (owner, text, hour, minute, recurrence.value, weekday, now),
            )
            task_id = cursor.lastrowid

        task = Task(
            id=task_id,
            owner=owner,
            text=text,
            hour=hour,
            minute=minute,
            recurrence=recurrence,
            weekday=weekday,
            active=True,
            created_at=now,
        )
        logger.info(
            "Task added: #%d for %d at %02d:%02d (%s)",
            task_id, owner, hour, minute, recurrence.value,
        )
        return task

    def get_task(self, task_id: int) -> Task | None:
        """Fetch a single task by ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM tasks WHERE id = ?", (task_id,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    def list_active(self) -> list[Task]:
        """Return every active task across all owners."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM tasks WHERE active = 1 ORDER BY id"
            ).fetchall()
        return [self._row_to_task(r) for r in rows]

    def list_for_owner(self, owner: int, active_only: bool = True) -> list[Task]:
        """List one owner's tasks, ordered by time of day."""
        query = "SELECT * FROM tasks WHERE owner = ?"
        if active_only:
            query += " AND active = 1"
        query += " ORDER BY hour, minute, id"

        with self._connect() as conn:
            rows = conn.execute(query, (owner,)).fetchall()

        return [self._row_to_task(r) for r in rows]

    def deactivate(self, task_id: int) -> bool:
        """Soft-delete a task (set active = False).

        Returns False if the task is missing or already inactive; that is
        not an error.
        """
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE tasks SET active = 0 WHERE id = ? AND active = 1",
                (task_id,),
            )
        deactivated = cursor.rowcount > 0
        if deactivated:
            logger.info("Task #%d deactivated", task_id)
        return deactivated

    def delete_for_owner(self, owner: int, task_id: int) -> bool:
        """Soft-delete a task only if it belongs to ``owner``."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE tasks SET active = 0 WHERE id = ? AND owner = ? AND active = 1",
                (task_id, owner),
            )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Task #%d deleted by owner %d", task_id, owner)
        return deleted


class UserDB(_SQLiteDB):
    """SQLite-backed storage for chats and their timezone. Implements UserPreferenceStore."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    owner       INTEGER PRIMARY KEY,
                    timezone    TEXT,
                    created_at  TEXT NOT NULL
                )
            """)
        logger.debug("Users table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            owner=row["owner"],
            timezone=row["timezone"],
            created_at=row["created_at"],
        )

    def ensure_user(self, owner: int) -> User:
        """Register a chat on first contact; return the existing row otherwise."""
        now = datetime.now().isoformat()
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO users (owner, timezone, created_at) VALUES (?, NULL, ?)",
                (owner, now),
            )
            row = conn.execute(
                "SELECT * FROM users WHERE owner = ?", (owner,)
            ).fetchone()
        if cursor.rowcount > 0:
            logger.info("User registered: %d", owner)
        return self._row_to_user(row)

    def get_user(self, owner: int) -> User | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE owner = ?", (owner,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    def get_timezone(self, owner: int) -> str | None:
        """Return the stored timezone name, or None if unset or unknown owner."""
        user = self.get_user(owner)
        return user.timezone if user else None

    def set_timezone(self, owner: int, timezone: str) -> None:
        """Store a (pre-validated) timezone for a chat, registering it if needed."""
        self.ensure_user(owner)
        with self._connect() as conn:
            conn.execute(
                "UPDATE users SET timezone = ? WHERE owner = ?",
                (timezone, owner),
            )
        logger.info("Timezone set for user %d: %s", owner, timezone)

    def list_owners(self) -> list[int]:
        """Return every registered chat ID."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT owner FROM users ORDER BY created_at"
            ).fetchall()
        return [r["owner"] for r in rows]


class HolidayDB(_SQLiteDB):
    """SQLite-backed holiday calendar. Implements HolidaySource."""

    def __init__(self, db_path: str | None = None, country: str | None = None) -> None:
        if country is None:
            from src.config import settings
            country = settings.HOLIDAY_COUNTRY
        self._country = country
        super().__init__(db_path)

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS holidays (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    name        TEXT    NOT NULL,
                    description TEXT    NOT NULL DEFAULT '',
                    date        TEXT    NOT NULL,
                    year        INTEGER NOT NULL,
                    month       INTEGER NOT NULL,
                    day         INTEGER NOT NULL,
                    type        TEXT    NOT NULL DEFAULT 'national',
                    country     TEXT    NOT NULL DEFAULT 'MM',
                    UNIQUE (name, year, month, day, country)
                )
            """)
        logger.debug("Holidays table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_holiday(row: sqlite3.Row) -> Holiday:
        return Holiday(
            name=row["name"],
            description=row["description"],
            date=row["date"],
            year=row["year"],
            month=row["month"],
            day=row["day"],
            type=row["type"],
            country=row["country"],
        )

    def add_holidays(self, holidays: list[Holiday]) -> int:
        """Insert holidays, skipping duplicates. Returns how many were new."""
        added = 0
        with self._connect() as conn:
            for h in holidays:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO holidays
                        (name, description, date, year, month, day, type, country)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (h.name, h.description, h.date, h.year, h.month, h.day, h.type, h.country),
                )
                added += cursor.rowcount
        logger.info("Holidays stored: %d new of %d", added, len(holidays))
        return added

    def delete_before_year(self, year: int) -> int:
        """Drop holidays from years before ``year``."""
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM holidays WHERE country = ? AND year < ?",
                (self._country, year),
            )
        if cursor.rowcount:
            logger.info("Deleted %d old holidays", cursor.rowcount)
        return cursor.rowcount

    def holidays_on(self, month: int, day: int, year: int | None = None) -> list[str]:
        """Names of holidays on (month, day) in ``year`` (default: current year)."""
        if year is None:
            year = datetime.now().year
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT name FROM holidays
                WHERE country = ? AND year = ? AND month = ? AND day = ?
                ORDER BY id
                """,
                (self._country, year, month, day),
            ).fetchall()
        return [r["name"] for r in rows]

    def list_year(self, year: int) -> list[Holiday]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM holidays WHERE country = ? AND year = ?
                ORDER BY month, day, id
                """,
                (self._country, year),
            ).fetchall()
        return [self._row_to_holiday(r) for r in rows]

    def count_year(self, year: int) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM holidays WHERE country = ? AND year = ?",
                (self._country, year),
            ).fetchone()
        return row["n"]


class DuplicateDateError(ValueError):
    """Raised when a chat already has a personal date with the same name."""


class PersonalDateDB(_SQLiteDB):
    """SQLite-backed storage for each chat's personal dates.

    Dates are listed in calendar order (month, day); that order is also
    the 1-based numbering /deletedate uses.
    """

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS personal_dates (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner       INTEGER NOT NULL,
                    name        TEXT    NOT NULL,
                    month       INTEGER NOT NULL,
                    day         INTEGER NOT NULL,
                    year        INTEGER,
                    type        TEXT    NOT NULL DEFAULT 'custom',
                    emoji       TEXT    NOT NULL DEFAULT '📅',
                    created_at  TEXT    NOT NULL DEFAULT ''
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_personal_dates_owner_day "
                "ON personal_dates (owner, month, day)"
            )
        logger.debug("Personal dates table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_date(row: sqlite3.Row) -> PersonalDate:
        return PersonalDate(
            id=row["id"],
            owner=row["owner"],
            name=row["name"],
            month=row["month"],
            day=row["day"],
            year=row["year"],
            type=DateType(row["type"]),
            emoji=row["emoji"],
            created_at=row["created_at"],
        )

    def add_date(
        self,
        owner: int,
        name: str,
        month: int,
        day: int,
        year: int | None = None,
        type: DateType = DateType.CUSTOM,
        emoji: str = "📅",
    ) -> PersonalDate:
        """Insert a personal date.

        Raises ValueError on invalid fields and DuplicateDateError if the
        chat already has a date with this name (case-insensitive).
        """
        name = name.strip()
        validate_personal_date_fields(name, month, day, year)

        now = datetime.now().isoformat()
        with self._connect() as conn:
            existing = conn.execute(
                "SELECT 1 FROM personal_dates WHERE owner = ? AND LOWER(name) = LOWER(?)",
                (owner, name),
            ).fetchone()
            if existing:
                raise DuplicateDateError(f'"{name}" already exists.')
            cursor = conn.execute(
                """
                INSERT INTO personal_dates
                    (owner, name, month, day, year, type, emoji, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (owner, name, month, day, year, type.value, emoji, now),
            )
            date_id = cursor.lastrowid

        logger.info("Personal date added: #%d for %d on %02d-%02d", date_id, owner, month, day)
        return PersonalDate(
            id=date_id,
            owner=owner,
            name=name,
            month=month,
            day=day,
            year=year,
            type=type,
            emoji=emoji,
            created_at=now,
        )

    def list_for_owner(self, owner: int) -> list[PersonalDate]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM personal_dates WHERE owner = ? ORDER BY month, day, id",
                (owner,),
            ).fetchall()
        return [self._row_to_date(r) for r in rows]

    def delete_by_number(self, owner: int, number: int) -> PersonalDate | None:
        """Delete the ``number``-th date (1-based, calendar order).

        Returns the deleted date, or None if the number is out of range.
        """
        dates = self.list_for_owner(owner)
        if not 1 <= number <= len(dates):
            return None
        target = dates[number - 1]
        with self._connect() as conn:
            conn.execute("DELETE FROM personal_dates WHERE id = ?", (target.id,))
        logger.info("Personal date #%d deleted by owner %d", target.id, owner)
        return target

    def count_for_owner(self, owner: int) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM personal_dates WHERE owner = ?", (owner,)
            ).fetchone()
        return row["n"]
