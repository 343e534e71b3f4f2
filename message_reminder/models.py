"""Data models for the message reminder service."""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional


class NotificationKind(Enum):
    """Why a notification is being sent."""
    SET = "set"          # Reminder was just created
    TRIGGER = "trigger"  # Reminder is due


class NotificationChannel(Enum):
    """Available notification channels."""
    LOG = "log"
    TELEGRAM = "telegram"
    WEBHOOK = "webhook"


class ReminderStatus(Enum):
    """Time-based classification used for display."""
    ACTIVE = "active"    # Due time still in the future
    EXPIRED = "expired"  # Due time has passed (triggered or not)


class DelayUnit(Enum):
    """Units a delay can be expressed in, valued in seconds."""
    SECONDS = 1
    MINUTES = 60
    HOURS = 3600

    @classmethod
    def parse(cls, value: str) -> "DelayUnit":
        """Look up a unit by name ("minutes", "Minutes", "minute" all work)."""
        name = value.strip().upper()
        if not name.endswith("S"):
            name += "S"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown delay unit: {value}") from None


# Latest due time that still formats as a date in any timezone
MAX_DUE_AT_MS = int(datetime(9999, 12, 30, tzinfo=timezone.utc).timestamp()) * 1000


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_iso(epoch_ms: int) -> str:
    """Format epoch milliseconds as an ISO-8601 UTC timestamp."""
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).isoformat()


@dataclass
class Reminder:
    """A one-shot timed reminder."""
    id: str
    message: str
    due_at: int  # epoch ms
    triggered: bool = False

    def is_expired(self, now: int) -> bool:
        return self.due_at <= now

    def is_pending_due(self, now: int) -> bool:
        """Due and not yet successfully notified."""
        return not self.triggered and self.is_expired(now)

    def to_dict(self) -> dict:
        """Convert reminder to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "message": self.message,
            "due_at": self.due_at,
            "triggered": self.triggered,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Reminder":
        """
        Create a reminder from a persisted record.

        Records written by the chat-client plugin used "timestamp" instead of
        "due_at"; both are accepted.

        Raises:
            ValueError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"Reminder record must be an object, got {type(data).__name__}")

        reminder_id = data.get("id")
        message = data.get("message")
        due_at = data.get("due_at", data.get("timestamp"))
        triggered = data.get("triggered", False)

        if not isinstance(reminder_id, str) or not reminder_id:
            raise ValueError(f"Invalid reminder id: {reminder_id!r}")
        if not isinstance(message, str):
            raise ValueError(f"Invalid message for reminder {reminder_id}")
        # bool is an int subclass; a boolean due time is garbage
        if isinstance(due_at, bool) or not isinstance(due_at, (int, float)):
            raise ValueError(f"Invalid due_at for reminder {reminder_id}: {due_at!r}")
        if not isinstance(triggered, bool):
            raise ValueError(f"Invalid triggered flag for reminder {reminder_id}: {triggered!r}")

        return cls(
            id=reminder_id,
            message=message,
            due_at=int(due_at),
            triggered=triggered,
        )


@dataclass(frozen=True)
class ReminderNotification:
    """Payload handed from the scheduler/registry to the notifier."""
    kind: NotificationKind
    message: str
    due_at: int  # epoch ms
    reminder_id: Optional[str] = None
    channel: Optional[NotificationChannel] = None  # None = use default

    @classmethod
    def for_reminder(cls, reminder: Reminder, kind: NotificationKind) -> "ReminderNotification":
        return cls(
            kind=kind,
            message=reminder.message,
            due_at=reminder.due_at,
            reminder_id=reminder.id,
        )


@dataclass
class ReminderPartition:
    """Reminders split into active and expired, in insertion order."""
    active: List[Reminder] = field(default_factory=list)
    expired: List[Reminder] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "active": [r.to_dict() for r in self.active],
            "expired": [r.to_dict() for r in self.expired],
        }
