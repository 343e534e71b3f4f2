"""Unit tests for active/expired partitioning."""

import pytest

from message_reminder.models import Reminder, ReminderStatus
from message_reminder.query import classify, partition


@pytest.fixture
def reminders():
    return [
        Reminder(id="a", message="a", due_at=1000),
        Reminder(id="b", message="b", due_at=5000, triggered=True),
        Reminder(id="c", message="c", due_at=3000),
        Reminder(id="d", message="d", due_at=5000),
    ]


@pytest.mark.parametrize("now", [-1, 0, 999, 1000, 2999, 3000, 4999, 5000, 10**13])
def test_partition_is_total_and_disjoint(reminders, now):
    result = partition(reminders, now)
    active_ids = {r.id for r in result.active}
    expired_ids = {r.id for r in result.expired}

    assert active_ids.isdisjoint(expired_ids)
    assert active_ids | expired_ids == {r.id for r in reminders}
    assert len(result.active) + len(result.expired) == len(reminders)


def test_due_time_is_expired(reminders):
    result = partition(reminders, 3000)
    assert [r.id for r in result.expired] == ["a", "c"]
    assert [r.id for r in result.active] == ["b", "d"]


def test_triggered_flag_is_ignored():
    """A triggered reminder with a future due time stays active, and vice versa."""
    pending_past = Reminder(id="p", message="p", due_at=10)
    triggered_future = Reminder(id="t", message="t", due_at=10_000, triggered=True)

    assert classify(pending_past, 100) is ReminderStatus.EXPIRED
    assert classify(triggered_future, 100) is ReminderStatus.ACTIVE


def test_partition_keeps_input_order(reminders):
    result = partition(reminders, 0)
    assert [r.id for r in result.active] == ["a", "b", "c", "d"]


def test_empty():
    result = partition([], 0)
    assert result.active == [] and result.expired == []


def test_to_dict(reminders):
    data = partition(reminders[:1], 2000).to_dict()
    assert data == {"active": [], "expired": [reminders[0].to_dict()]}
