"""In-memory reminder collection persisted as a single snapshot blob."""

import json
import logging
import uuid
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from .models import MAX_DUE_AT_MS, NotificationKind, Reminder, ReminderNotification, now_ms
from .store import DEFAULT_STORE_KEY, StoreAdapter

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Rejected input to create (blank message, non-positive delay)."""


class PersistenceParseError(ValueError):
    """A persisted snapshot could not be decoded."""


def encode_snapshot(reminders: List[Reminder]) -> str:
    """Serialize reminders to the persisted JSON array format."""
    return json.dumps([r.to_dict() for r in reminders])


def decode_snapshot(blob: str) -> List[Reminder]:
    """
    Parse a persisted JSON array of reminder records.

    Raises:
        PersistenceParseError: If the blob is not valid JSON or a record is malformed
    """
    try:
        data = json.loads(blob)
    except (TypeError, ValueError) as e:
        raise PersistenceParseError(f"Snapshot is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise PersistenceParseError(f"Snapshot must be a list, got {type(data).__name__}")

    try:
        return [Reminder.from_dict(item) for item in data]
    except ValueError as e:
        raise PersistenceParseError(str(e)) from e


class ReminderRegistry:
    """
    Authoritative collection of reminders.

    Every mutation rewrites the whole collection under one store key.
    Dicts keep insertion order, which is the display order.
    """

    def __init__(
        self,
        store: StoreAdapter,
        notifier=None,
        store_key: str = DEFAULT_STORE_KEY,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize reminder registry.

        Args:
            store: Persistence backend
            notifier: Optional Notifier used to announce newly set reminders
            store_key: Key the snapshot is stored under
            clock: Returns the current time in epoch milliseconds
        """
        self.store = store
        self.notifier = notifier
        self.store_key = store_key
        self.clock = clock
        self._reminders: Dict[str, Reminder] = {}

    def __len__(self) -> int:
        return len(self._reminders)

    def _new_id(self) -> str:
        reminder_id = uuid.uuid4().hex[:12]
        while reminder_id in self._reminders:
            reminder_id = uuid.uuid4().hex[:12]
        return reminder_id

    def _persist(self) -> bool:
        """
        Write the full snapshot to the store.

        Returns:
            True if persisted, False if the backend failed
        """
        try:
            self.store.set(self.store_key, encode_snapshot(list(self._reminders.values())))
            return True
        except Exception as e:
            logger.error(f"CRITICAL: Failed to persist reminders under '{self.store_key}': {e}")
            logger.error("Reminder state NOT persisted! Changes may be lost on restart.")
            return False

    async def create(self, message: str, delay_ms: int) -> Reminder:
        """
        Create a reminder due ``delay_ms`` from now.

        Args:
            message: Reminder text (must contain non-whitespace)
            delay_ms: Delay in milliseconds (must be positive)

        Returns:
            The created Reminder

        Raises:
            ValidationError: If message is blank, or delay is not positive
                or lands past MAX_DUE_AT_MS
        """
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("Reminder message cannot be empty")
        if isinstance(delay_ms, bool) or not isinstance(delay_ms, int):
            raise ValidationError(f"Delay must be an integer number of milliseconds, got {delay_ms!r}")
        if delay_ms <= 0:
            raise ValidationError(f"Delay must be positive, got {delay_ms}")

        due_at = self.clock() + delay_ms
        if due_at > MAX_DUE_AT_MS:
            raise ValidationError(f"Delay of {delay_ms}ms puts the reminder past the latest supported date")

        reminder = Reminder(
            id=self._new_id(),
            message=message,
            due_at=due_at,
        )
        self._reminders[reminder.id] = reminder
        self._persist()
        logger.info(f"Created reminder {reminder.id} due at {reminder.due_at}")

        await self._announce(reminder)
        return replace(reminder)

    async def _announce(self, reminder: Reminder):
        """Tell the user a reminder was set. Failure here never undoes creation."""
        if not self.notifier:
            return
        try:
            sent = await self.notifier.notify(
                ReminderNotification.for_reminder(reminder, NotificationKind.SET)
            )
            if not sent:
                logger.warning(f"Could not announce reminder {reminder.id}")
        except Exception as e:
            logger.warning(f"Announcing reminder {reminder.id} failed (non-fatal): {e}")

    def delete(self, reminder_id: str) -> bool:
        """
        Remove a reminder. Unknown ids are ignored.

        Returns:
            True if a reminder was removed
        """
        if self._reminders.pop(reminder_id, None) is None:
            return False
        self._persist()
        logger.info(f"Deleted reminder {reminder_id}")
        return True

    def get(self, reminder_id: str) -> Optional[Reminder]:
        reminder = self._reminders.get(reminder_id)
        return replace(reminder) if reminder else None

    def list(self) -> List[Reminder]:
        """Snapshot of all reminders in insertion order."""
        return [replace(r) for r in self._reminders.values()]

    def pending_due(self, now: int) -> List[Reminder]:
        """Reminders that are due and not yet triggered."""
        return [replace(r) for r in self._reminders.values() if r.is_pending_due(now)]

    def mark_triggered(self, reminder_id: str) -> bool:
        """
        Set the triggered flag. Only the scheduler calls this.

        Returns:
            True if the flag changed (False for unknown or already triggered ids)
        """
        reminder = self._reminders.get(reminder_id)
        if not reminder or reminder.triggered:
            return False
        reminder.triggered = True
        self._persist()
        return True

    def load_from_store(self) -> int:
        """
        Replace the in-memory collection with the persisted snapshot.

        A missing or unreadable snapshot yields an empty collection.

        Returns:
            Number of reminders loaded
        """
        try:
            blob = self.store.get(self.store_key)
        except Exception as e:
            logger.error(f"Failed to read reminders from store: {e}")
            blob = None

        if blob is None:
            self._reminders = {}
            return 0

        try:
            reminders = decode_snapshot(blob)
        except PersistenceParseError as e:
            logger.error(f"Failed to parse reminders, starting empty: {e}")
            self._reminders = {}
            return 0

        loaded: Dict[str, Reminder] = {}
        for reminder in reminders:
            if reminder.id in loaded:
                logger.warning(f"Duplicate reminder id {reminder.id} in snapshot, keeping the first")
                continue
            loaded[reminder.id] = reminder
        self._reminders = loaded

        logger.info(f"Loaded {len(loaded)} reminder(s) from store")
        return len(loaded)

    def clear(self, purge_store: bool = True):
        """Drop all reminders, and the persisted snapshot unless purge_store is False."""
        self._reminders = {}
        if not purge_store:
            return
        try:
            self.store.delete(self.store_key)
        except Exception as e:
            logger.error(f"Failed to clear persisted reminders: {e}")
