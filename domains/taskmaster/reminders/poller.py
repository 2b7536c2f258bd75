"""Background poller that fires due reminders.

Every tick reads the session's reminders, notifies the ones that became due
within the last tick window, drops fired one-shots, re-arms recurring ones and
writes the collection back in a single state delta.

A reminder is due when 0 <= now - scheduled_time < interval. The window is
half-open so each occurrence is picked up by exactly one tick, provided ticks
are not delayed by more than one interval.
"""

import asyncio
import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import REMINDER_POLLING_MS
from logger import logger
from ..clock import local_now
from ..config import REMINDERS_FIELD
from ..state import StateStore
from ..transport import Transport
from .executor import deliver_reminder, describe_due
from .models import Reminder, dump_reminders, load_reminders
from .recurrence import advance


@dataclass
class CycleReport:
    """What one scan cycle did."""
    due: int = 0
    notified: int = 0
    failed: list[str] = field(default_factory=list)
    rearmed: int = 0
    removed: int = 0
    skipped: bool = False


def select_due(reminders: list[Reminder], now: datetime, window: timedelta) -> list[Reminder]:
    """Reminders that became due within the last ``window``."""
    return [
        r for r in reminders
        if r.scheduled_time is not None and timedelta(0) <= now - r.scheduled_time < window
    ]


def build_next_collection(reminders: list[Reminder], due: list[Reminder], now: datetime) -> list[Reminder]:
    """Drop fired one-shots and re-arm fired recurring reminders, keeping order."""
    due_ids = {r.id for r in due}
    updated = []

    for reminder in reminders:
        if reminder.id not in due_ids:
            updated.append(reminder)
            continue

        if reminder.recurring is None:
            continue

        next_time = advance(reminder.scheduled_time, reminder.recurring, now)
        updated.append(dataclasses.replace(reminder, scheduled_time=next_time))
        logger.info(f"Scheduled next occurrence of recurring reminder {reminder.id}: '{reminder.text}' at {next_time}")

    return updated


class ReminderPoller:
    """Timer-driven reminder notifications for one session.

    Usage:
        poller = ReminderPoller(store, "default", TelegramTransport(token, chat))
        poller.start()
        ...
        poller.stop()
    """

    def __init__(
        self,
        store: StateStore,
        session_key: str,
        transport: Transport,
        interval_ms: int = REMINDER_POLLING_MS,
        scheduler: Optional[AsyncIOScheduler] = None,
        clock: Callable[[], datetime] = local_now,
    ):
        """Initialize poller.

        Args:
            store: Session state store holding the reminders
            session_key: Session whose reminders are watched
            transport: Where notifications are sent
            interval_ms: Tick interval, also the width of the due window
            scheduler: Shared APScheduler instance; one is created if omitted
            clock: Returns the current aware datetime
        """
        if interval_ms <= 0:
            raise ValueError(f"Polling interval must be positive, got {interval_ms}")

        self.store = store
        self.session_key = session_key
        self.transport = transport
        self.interval = timedelta(milliseconds=interval_ms)
        self.clock = clock

        self._owns_scheduler = scheduler is None
        self._scheduler = scheduler
        self._job_id = f"reminder_poller:{session_key}"
        self._running = False
        self._cycle_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start ticking. No-op (with a warning) if already running."""
        if self._running:
            logger.warning("Reminder notification service is already running")
            return

        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler()

        self._scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(seconds=self.interval.total_seconds()),
            id=self._job_id,
            name=f"Reminder poller ({self.session_key})",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        if self._owns_scheduler and not self._scheduler.running:
            self._scheduler.start()

        self._running = True
        logger.info(
            f"Started reminder notification service for session {self.session_key} "
            f"(every {self.interval.total_seconds():g}s)"
        )

    def stop(self) -> None:
        """Stop future ticks. Does not interrupt a cycle already running."""
        if not self._running:
            return

        self._running = False
        try:
            self._scheduler.remove_job(self._job_id)
        except JobLookupError:
            pass

        if self._owns_scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        logger.info(f"Stopped reminder notification service for session {self.session_key}")

    async def _tick(self) -> None:
        """Scheduler entry point: one cycle, errors logged and never raised."""
        if self._cycle_lock.locked():
            logger.warning("Previous reminder scan still running, skipping tick")
            return

        try:
            await self.run_cycle()
        except Exception as e:
            logger.error(f"Error checking reminders: {e}")

    async def run_cycle(self, now: Optional[datetime] = None) -> CycleReport:
        """Scan once: notify due reminders and write back the updated collection.

        Args:
            now: Reference time (defaults to the poller clock)

        Returns:
            CycleReport of what was done
        """
        async with self._cycle_lock:
            now = now or self.clock()
            report = CycleReport()

            state = self.store.get_session(self.session_key)
            if state is None:
                report.skipped = True
                return report

            reminders = load_reminders(state.get(REMINDERS_FIELD, []))
            if not reminders:
                return report

            due = select_due(reminders, now, self.interval)
            report.due = len(due)
            if not due:
                return report

            logger.info(f"Found {len(due)} due reminder(s): {', '.join(describe_due(r, now) for r in due)}")

            for reminder in due:
                error = await deliver_reminder(self.transport, reminder, now.tzinfo)
                if error:
                    report.failed.append(reminder.id)
                else:
                    report.notified += 1

            updated = build_next_collection(reminders, due, now)
            report.rearmed = sum(1 for r in due if r.recurring is not None)
            report.removed = len(due) - report.rearmed

            self.store.append_state_delta(self.session_key, {REMINDERS_FIELD: dump_reminders(updated)})
            return report
