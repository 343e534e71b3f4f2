"""Integration tests for the reminder HTTP API."""

import pytest

from message_reminder.models import NotificationKind
from message_reminder.server import create_app
from fastapi.testclient import TestClient


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, test_client):
        response = test_client.get("/")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "message-reminder"}

    def test_health_reports_scheduler_state(self, test_client):
        data = test_client.get("/health").json()
        assert data["scheduler_running"] is False
        assert data["status"] == "degraded"
        assert data["reminders"] == 0

    def test_no_scheduler_configured(self):
        client = TestClient(create_app(scheduler=None))
        assert client.get("/reminders").status_code == 503


class TestCreateReminder:
    """POST /reminders."""

    def test_create_with_delay_ms(self, test_client, clock):
        clock.now = 1_000
        response = test_client.post("/reminders", json={"message": "buy milk", "delay_ms": 5000})
        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "buy milk"
        assert data["due_at"] == 6_000
        assert data["triggered"] is False

    def test_create_with_amount_and_unit(self, test_client):
        response = test_client.post("/reminders", json={"message": "tea", "amount": 2, "unit": "hours"})
        assert response.status_code == 201
        assert response.json()["due_at"] == 2 * 3600 * 1000

    def test_unit_defaults_to_minutes(self, test_client):
        response = test_client.post("/reminders", json={"message": "tea", "amount": 3})
        assert response.json()["due_at"] == 180_000

    @pytest.mark.parametrize("body", [
        {"message": "   ", "delay_ms": 1000},
        {"message": "x", "delay_ms": 0},
        {"message": "x", "delay_ms": -10},
        {"message": "x"},
        {"message": "x", "amount": 1, "unit": "weeks"},
        {"message": "x", "delay_ms": 10**18},
        {"message": "x", "amount": 10**12, "unit": "hours"},
    ])
    def test_validation_errors(self, test_client, body):
        response = test_client.post("/reminders", json=body)
        assert response.status_code == 400
        assert test_client.get("/reminders").json() == {"reminders": []}

    def test_announces_set(self, test_client, mock_notifier):
        test_client.post("/reminders", json={"message": "x", "delay_ms": 1000})
        notification = mock_notifier.notify.await_args.args[0]
        assert notification.kind is NotificationKind.SET


class TestListAndPartition:
    """GET /reminders and /reminders/partition."""

    def test_list_filters_by_status(self, test_client, clock):
        soon = test_client.post("/reminders", json={"message": "soon", "delay_ms": 1000}).json()
        later = test_client.post("/reminders", json={"message": "later", "delay_ms": 9000}).json()
        clock.now = 5000

        all_ids = [r["id"] for r in test_client.get("/reminders").json()["reminders"]]
        active = test_client.get("/reminders", params={"status": "active"}).json()["reminders"]
        expired = test_client.get("/reminders", params={"status": "expired"}).json()["reminders"]

        assert all_ids == [soon["id"], later["id"]]
        assert [r["id"] for r in active] == [later["id"]]
        assert [r["id"] for r in expired] == [soon["id"]]

    def test_invalid_status(self, test_client):
        assert test_client.get("/reminders", params={"status": "snoozed"}).status_code == 422

    def test_partition_at_explicit_time(self, test_client):
        created = test_client.post("/reminders", json={"message": "buy milk", "delay_ms": 5000}).json()

        early = test_client.get("/reminders/partition", params={"now": 4000}).json()
        late = test_client.get("/reminders/partition", params={"now": 5000}).json()

        assert early["now"] == 4000
        assert [r["id"] for r in early["active"]] == [created["id"]]
        assert early["expired"] == []
        assert [r["id"] for r in late["expired"]] == [created["id"]]

    def test_partition_defaults_to_clock(self, test_client, clock):
        clock.now = 123
        assert test_client.get("/reminders/partition").json()["now"] == 123

    def test_get_one(self, test_client):
        created = test_client.post("/reminders", json={"message": "x", "delay_ms": 1000}).json()
        assert test_client.get(f"/reminders/{created['id']}").json() == created
        assert test_client.get("/reminders/missing").status_code == 404


class TestDeleteAndFocus:
    """DELETE /reminders/{id} and POST /focus."""

    def test_delete(self, test_client):
        created = test_client.post("/reminders", json={"message": "x", "delay_ms": 1000}).json()
        assert test_client.delete(f"/reminders/{created['id']}").json() == {"deleted": True}
        assert test_client.get("/reminders").json() == {"reminders": []}

    def test_delete_nonexistent_is_not_an_error(self, test_client):
        response = test_client.delete("/reminders/nonexistent-id")
        assert response.status_code == 200
        assert response.json() == {"deleted": False}

    def test_focus_triggers_due_reminders_once(self, test_client, mock_notifier, clock):
        created = test_client.post("/reminders", json={"message": "x", "delay_ms": 1000}).json()
        clock.now = 2000

        assert test_client.post("/focus").json() == {"triggered": [created["id"]]}
        assert test_client.post("/focus").json() == {"triggered": []}

        triggers = [
            c.args[0] for c in mock_notifier.notify.await_args_list
            if c.args[0].kind is NotificationKind.TRIGGER
        ]
        assert len(triggers) == 1
        assert test_client.get(f"/reminders/{created['id']}").json()["triggered"] is True
