"""Polling scheduler that fires due reminders exactly once."""

import asyncio
import logging
from typing import Callable, List, Optional

from .models import NotificationKind, Reminder, ReminderNotification, ReminderPartition
from .query import partition
from .registry import ReminderRegistry

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """
    Owns the reminder registry and the tick loop.

    Each reminder moves Pending -> Triggered once, and only after the
    notifier reports success. Every entry point (periodic loop, focus
    regain, API) runs the same ``tick()`` under one lock, so two ticks
    never interleave and a reminder is never notified twice.

    Key features:
    - Periodic tick every ``interval_seconds``
    - Out-of-band tick when the host regains focus
    - Catch-up of reminders that fell due while the process was stopped
    - Failed notifications stay pending and are retried next tick
    """

    def __init__(
        self,
        registry: ReminderRegistry,
        notifier,
        interval_seconds: float = 1.0,
        clear_on_teardown: bool = True,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            registry: Reminder registry to drive
            notifier: Notifier used for trigger notifications
            interval_seconds: Seconds between periodic ticks
            clear_on_teardown: Also delete persisted reminders on teardown
            clock: Epoch-ms clock (defaults to the registry's clock)
        """
        self.registry = registry
        self.notifier = notifier
        self.interval_seconds = interval_seconds
        self.clear_on_teardown = clear_on_teardown
        self.clock = clock or registry.clock

        self._running = False
        self._initialized = False
        self._loop_task: Optional[asyncio.Task] = None
        self._tick_lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._running

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def init(self):
        """Load persisted reminders and start the periodic tick loop."""
        if self._running:
            return
        count = self.registry.load_from_store()
        self._initialized = True
        self._running = True
        self._loop_task = asyncio.create_task(self._tick_loop())
        logger.info(f"Reminder scheduler started with {count} reminder(s), tick every {self.interval_seconds}s")

    async def teardown(self):
        """
        Stop the tick loop and reset all reminder state.

        A tick already in progress finishes before state is cleared.
        Without a completed init() nothing was loaded, so persisted
        reminders are left alone.
        """
        self._running = False
        task, self._loop_task = self._loop_task, None
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if not self._initialized:
            logger.info("Reminder scheduler was never initialized, leaving stored reminders untouched")
            return

        # Wait out an in-flight tick (shielded from the cancel above)
        async with self._tick_lock:
            self.registry.clear(purge_store=self.clear_on_teardown)
        self._initialized = False
        logger.info("Reminder scheduler stopped")

    async def _tick_loop(self):
        """Run tick() every interval until cancelled. Errors never stop the loop."""
        while self._running:
            try:
                await asyncio.shield(self.tick())
            except asyncio.CancelledError:
                logger.info("Reminder tick loop cancelled")
                break
            except Exception as e:
                logger.error(f"Reminder tick failed: {e}", exc_info=True)

            await asyncio.sleep(self.interval_seconds)

    # =========================================================================
    # Ticking
    # =========================================================================

    async def tick(self) -> List[str]:
        """
        Notify every due, untriggered reminder.

        Returns:
            IDs of reminders triggered by this tick
        """
        async with self._tick_lock:
            now = self.clock()
            triggered: List[str] = []

            for reminder in self.registry.pending_due(now):
                # Re-check: a delete may have landed while we awaited the notifier
                current = self.registry.get(reminder.id)
                if not current or current.triggered:
                    continue

                if not await self._deliver(current):
                    continue

                if self.registry.mark_triggered(current.id):
                    triggered.append(current.id)
                    logger.info(f"Reminder {current.id} triggered")

            return triggered

    async def _deliver(self, reminder: Reminder) -> bool:
        """Send the trigger notification. False leaves the reminder pending."""
        notification = ReminderNotification.for_reminder(reminder, NotificationKind.TRIGGER)
        try:
            sent = await self.notifier.notify(notification)
        except Exception as e:
            logger.warning(f"Notifier raised for reminder {reminder.id}, will retry: {e}")
            return False

        if not sent:
            logger.debug(f"Reminder {reminder.id} not delivered, will retry next tick")
        return bool(sent)

    async def on_focus_regained(self) -> List[str]:
        """Catch up immediately when the host regains focus."""
        logger.debug("Focus regained, running catch-up tick")
        return await self.tick()

    # =========================================================================
    # Operations for the presentation layer
    # =========================================================================

    async def create(self, message: str, delay_ms: int) -> Reminder:
        return await self.registry.create(message, delay_ms)

    def delete(self, reminder_id: str) -> bool:
        return self.registry.delete(reminder_id)

    def list(self) -> List[Reminder]:
        return self.registry.list()

    def partition(self, now: Optional[int] = None) -> ReminderPartition:
        """Active/expired view of the registry as of ``now`` (default: current time)."""
        return partition(self.registry.list(), self.clock() if now is None else now)
