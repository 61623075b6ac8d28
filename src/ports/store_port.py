"""Store ports — the narrow read/write surface the scheduler needs.

The SQLite classes in src.data.db satisfy these; tests use in-memory fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from src.data.models import Task


class TaskStore(Protocol):
    """Reminder definitions."""

    def list_active(self) -> list[Task]: ...

    def deactivate(self, task_id: int) -> bool:
        """Mark a task inactive. Missing or already-inactive tasks are a no-op."""
        ...


class UserPreferenceStore(Protocol):
    """Per-chat timezone preferences."""

    def get_timezone(self, owner: int) -> str | None: ...

    def list_owners(self) -> list[int]: ...


class HolidaySource(Protocol):
    """Year-agnostic holiday lookup (the current year is chosen by the source)."""

    def holidays_on(self, month: int, day: int, year: int | None = None) -> list[str]: ...
