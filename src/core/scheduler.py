"""
Yangon Reminder Bot — Reminder and holiday schedulers.

Reminders: a polling loop (every SCHEDULER_INTERVAL_SECONDS) evaluates every
active task against its owner's local clock and sends it when the local
(hour, minute) equals the task's. A short-lived dedup key absorbs the
several ticks that land in the same minute. Minutes missed while the process
is down are not caught up.

Holidays: once per local day, at HOLIDAY_NOTIFY_HOUR, each user receives a
digest of today's public holidays.

This module is transport-agnostic: it depends on the store and notification
protocols in src.ports, not on Telegram or SQLite.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable

from src.core.clock import local_now, sunday_weekday
from src.core.dedup import ExpiringKeySet
from src.data.models import Recurrence

if TYPE_CHECKING:
    from src.core.quiet_hours import QuietHours
    from src.data.models import Task
    from src.ports.notification_port import NotificationPort
    from src.ports.store_port import HolidaySource, TaskStore, UserPreferenceStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Recurrence rules
# ---------------------------------------------------------------------------


def is_due_on(task: Task, local: datetime) -> bool:
    """Whether ``task`` may fire on the local calendar day of ``local``."""
    weekday = sunday_weekday(local)
    if task.recurrence is Recurrence.WEEKDAYS:
        return weekday not in (0, 6)
    if task.recurrence is Recurrence.WEEKLY:
        return task.weekday is not None and weekday == task.weekday
    # daily and once
    return True


def is_due_now(task: Task, local: datetime) -> bool:
    """Day rule plus exact (hour, minute) match."""
    return (
        is_due_on(task, local)
        and local.hour == task.hour
        and local.minute == task.minute
    )


def next_occurrence(task: Task, local: datetime) -> datetime:
    """Next local datetime (strictly after ``local``'s minute) the task would fire.

    Quiet hours are not considered; reminders inside them are refused at
    creation time.
    """
    candidate = local.replace(hour=task.hour, minute=task.minute, second=0, microsecond=0)
    if candidate <= local.replace(second=0, microsecond=0):
        candidate += timedelta(days=1)
    for _ in range(7):
        if is_due_on(task, candidate):
            return candidate
        candidate += timedelta(days=1)
    return candidate


def format_reminder(task: Task) -> str:
    return f"⏰ Reminder: {task.text}"


# ---------------------------------------------------------------------------
# Reminder scheduler
# ---------------------------------------------------------------------------


class ReminderScheduler:
    """Fires due reminders at most once per task per local minute.

    All state (the dedup ledger) lives on the instance, so tests can build
    as many independent schedulers as they like.
    """

    def __init__(
        self,
        task_store: TaskStore,
        user_store: UserPreferenceStore,
        notifier: NotificationPort,
        quiet_hours: QuietHours,
        default_timezone: str = "UTC",
        dedup_ttl_seconds: float = 60,
        clock: Callable[[], datetime] = _utcnow,
        monotonic: Callable[[], float] | None = None,
    ) -> None:
        self._tasks = task_store
        self._users = user_store
        self._notifier = notifier
        self._quiet_hours = quiet_hours
        self._default_tz = default_timezone
        self._clock = clock
        if monotonic is None:
            self._sent = ExpiringKeySet(dedup_ttl_seconds)
        else:
            self._sent = ExpiringKeySet(dedup_ttl_seconds, clock=monotonic)
        self._in_flight: set[str] = set()

    @staticmethod
    def dedup_key(task: Task, local: datetime) -> str:
        return f"{task.id}:{local:%Y-%m-%dT%H:%M}"

    def _timezone_for(self, owner: int, cache: dict[int, str | None]) -> str | None:
        if owner not in cache:
            try:
                cache[owner] = self._users.get_timezone(owner)
            except Exception as exc:
                logger.error("Timezone lookup failed for %d, using default: %s", owner, exc)
                cache[owner] = None
        return cache[owner]

    async def tick(self, now: datetime | None = None) -> int:
        """Run one evaluation pass. Returns the number of reminders sent.

        Never raises: store failures end the tick, per-task failures are
        logged and skipped.
        """
        if now is None:
            now = self._clock()

        try:
            tasks = self._tasks.list_active()
        except Exception as exc:
            logger.error("Reminder tick: failed to load tasks: %s", exc)
            return 0

        tz_cache: dict[int, str | None] = {}
        due: list[tuple[Task, datetime]] = []
        for task in tasks:
            tz_name = self._timezone_for(task.owner, tz_cache)
            local = local_now(tz_name, now=now, default=self._default_tz)

            if self.dedup_key(task, local) in self._sent:
                continue
            if self._quiet_hours.is_quiet(local.hour, local.minute):
                logger.debug("Task #%d skipped: quiet hours for %d", task.id, task.owner)
                continue
            if not is_due_now(task, local):
                continue
            due.append((task, local))

        if not due:
            return 0

        results = await asyncio.gather(*(self._fire(task, local) for task, local in due))
        return sum(results)

    async def _fire(self, task: Task, local: datetime) -> bool:
        key = self.dedup_key(task, local)
        if key in self._in_flight or key in self._sent:
            return False
        self._in_flight.add(key)
        try:
            try:
                await self._notifier.send_message(task.owner, format_reminder(task))
            except Exception as exc:
                logger.error("Failed to send reminder #%d to %d: %s", task.id, task.owner, exc)
                return False

            self._sent.add(key)
            logger.info(
                "Reminder #%d sent to %d at %s", task.id, task.owner, local.strftime("%Y-%m-%d %H:%M %Z"),
            )

            if task.recurrence is Recurrence.ONCE:
                try:
                    self._tasks.deactivate(task.id)
                except Exception as exc:
                    logger.error("Failed to deactivate one-time task #%d: %s", task.id, exc)
            return True
        finally:
            self._in_flight.discard(key)

    async def run_forever(self, interval_seconds: float) -> None:
        """Tick every ``interval_seconds`` until cancelled."""
        logger.info("Reminder scheduler polling every %ss", interval_seconds)
        while True:
            await self.tick()
            await asyncio.sleep(interval_seconds)


# ---------------------------------------------------------------------------
# Holiday notifier
# ---------------------------------------------------------------------------


class HolidayNotifier:
    """Sends each user one digest of today's holidays during their notify hour."""

    def __init__(
        self,
        user_store: UserPreferenceStore,
        holiday_source: HolidaySource,
        notifier: NotificationPort,
        notify_hour: int = 9,
        default_timezone: str = "UTC",
        marker_ttl_seconds: float = 3600,
        clock: Callable[[], datetime] = _utcnow,
        monotonic: Callable[[], float] | None = None,
    ) -> None:
        self._users = user_store
        self._holidays = holiday_source
        self._notifier = notifier
        self._notify_hour = notify_hour
        self._default_tz = default_timezone
        self._clock = clock
        if monotonic is None:
            self._notified = ExpiringKeySet(marker_ttl_seconds)
        else:
            self._notified = ExpiringKeySet(marker_ttl_seconds, clock=monotonic)

    @staticmethod
    def marker_key(owner: int, local: datetime) -> str:
        return f"{owner}:{local.month:02d}-{local.day:02d}"

    async def tick(self, now: datetime | None = None) -> int:
        """Send due digests. Returns the number of users notified."""
        if now is None:
            now = self._clock()

        try:
            owners = self._users.list_owners()
        except Exception as exc:
            logger.error("Holiday tick: failed to load users: %s", exc)
            return 0

        names_cache: dict[tuple[int, int, int], list[str]] = {}
        sent = 0
        for owner in owners:
            try:
                local = local_now(self._users.get_timezone(owner), now=now, default=self._default_tz)
                if local.hour != self._notify_hour:
                    continue
                key = self.marker_key(owner, local)
                if key in self._notified:
                    continue

                day = (local.year, local.month, local.day)
                if day not in names_cache:
                    names_cache[day] = self._holidays.holidays_on(
                        local.month, local.day, year=local.year,
                    )
                names = names_cache[day]
                if not names:
                    continue

                await self._notifier.send_holiday_digest(owner, names)
                self._notified.add(key)
                sent += 1
                logger.info("Holiday digest sent to %d (%d holidays)", owner, len(names))
            except Exception as exc:
                logger.error("Failed to send holiday digest to %d: %s", owner, exc)
        return sent
