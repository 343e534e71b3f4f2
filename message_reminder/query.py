"""Active/expired classification of reminders."""

from typing import Iterable

from .models import Reminder, ReminderPartition, ReminderStatus


def classify(reminder: Reminder, now: int) -> ReminderStatus:
    """Expired once the due time is reached, regardless of the triggered flag."""
    return ReminderStatus.EXPIRED if reminder.due_at <= now else ReminderStatus.ACTIVE


def partition(reminders: Iterable[Reminder], now: int) -> ReminderPartition:
    """
    Split reminders into active and expired as of ``now``.

    Every reminder lands in exactly one side; input order is kept.
    """
    result = ReminderPartition()
    for reminder in reminders:
        if classify(reminder, now) == ReminderStatus.EXPIRED:
            result.expired.append(reminder)
        else:
            result.active.append(reminder)
    return result
