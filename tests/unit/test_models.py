"""Unit tests for reminder data models."""

import pytest

from message_reminder.models import (
    DelayUnit,
    NotificationKind,
    Reminder,
    ReminderNotification,
    ms_to_iso,
)


class TestReminderSerialization:
    """Reminder.to_dict / from_dict."""

    def test_to_dict_fields(self):
        reminder = Reminder(id="abc", message="buy milk", due_at=5000, triggered=True)
        assert reminder.to_dict() == {
            "id": "abc",
            "message": "buy milk",
            "due_at": 5000,
            "triggered": True,
        }

    def test_from_dict_defaults_triggered_false(self):
        reminder = Reminder.from_dict({"id": "abc", "message": "x", "due_at": 10})
        assert reminder.triggered is False

    def test_from_dict_accepts_legacy_timestamp_key(self):
        """Plugin-era records stored the due time as "timestamp"."""
        reminder = Reminder.from_dict(
            {"message": "stand up", "timestamp": 1700000000000, "id": "k3j2h1", "triggered": False}
        )
        assert reminder.due_at == 1700000000000

    @pytest.mark.parametrize("record", [
        {"message": "x", "due_at": 1},                        # missing id
        {"id": "", "message": "x", "due_at": 1},              # empty id
        {"id": "a", "due_at": 1},                             # missing message
        {"id": "a", "message": "x"},                          # missing due_at
        {"id": "a", "message": "x", "due_at": "soon"},        # wrong type
        {"id": "a", "message": "x", "due_at": True},          # bool is not a time
        {"id": "a", "message": "x", "due_at": 1, "triggered": "yes"},
        ["not", "a", "dict"],
    ])
    def test_from_dict_rejects_malformed(self, record):
        with pytest.raises(ValueError):
            Reminder.from_dict(record)

    def test_expiry_is_inclusive(self):
        reminder = Reminder(id="a", message="x", due_at=100)
        assert not reminder.is_expired(99)
        assert reminder.is_expired(100)
        assert reminder.is_pending_due(100)

    def test_triggered_is_not_pending(self):
        reminder = Reminder(id="a", message="x", due_at=100, triggered=True)
        assert not reminder.is_pending_due(200)


class TestDelayUnit:
    """DelayUnit.parse."""

    @pytest.mark.parametrize("text,unit", [
        ("seconds", DelayUnit.SECONDS),
        ("Minutes", DelayUnit.MINUTES),
        ("hour", DelayUnit.HOURS),
        (" HOURS ", DelayUnit.HOURS),
    ])
    def test_parse(self, text, unit):
        assert DelayUnit.parse(text) is unit

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            DelayUnit.parse("fortnights")


def test_notification_for_reminder():
    reminder = Reminder(id="r1", message="call mom", due_at=42)
    notification = ReminderNotification.for_reminder(reminder, NotificationKind.TRIGGER)
    assert notification.kind is NotificationKind.TRIGGER
    assert notification.message == "call mom"
    assert notification.due_at == 42
    assert notification.reminder_id == "r1"
    assert notification.channel is None


def test_ms_to_iso_is_utc():
    assert ms_to_iso(0) == "1970-01-01T00:00:00+00:00"
    assert ms_to_iso(1500) == "1970-01-01T00:00:01.500000+00:00"
