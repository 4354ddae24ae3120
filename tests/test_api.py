"""HTTP tests for the reminder and notification log routes.

The dispatcher dependency is overridden so every request runs against an
in-memory SQLite session, a fixed clock and a recording sender.
"""
from __future__ import annotations

from datetime import date, timedelta
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_db, get_dispatcher
from app.audit.notification_log import NotificationLogWriter
from app.notification.candidates import SqlMembershipQueryGateway
from app.notification.dispatcher import ReminderDispatcher
from app.notification.errors import DataAccessError
from app.notification.models import Channel, SendResult
from app.notification.whatsapp_sender import WhatsAppSender

TODAY = date(2025, 1, 1)
URL = "/api/members/send-expiry-reminders"


def _clock() -> date:
    return TODAY


class RecordingSender:
    def __init__(self, configured: bool = True, fail_on=()) -> None:
        self.configured = configured
        self.fail_on = set(fail_on)
        self.sent: list[str] = []

    def is_configured(self) -> bool:
        return self.configured

    def send(self, destination: Channel, message: str) -> SendResult:
        self.sent.append(destination.destination)
        if destination.destination in self.fail_on:
            return SendResult(success=False, error="rate limited by provider: slow down")
        return SendResult(success=True)


class BrokenGateway:
    def find_expiring_memberships(self, threshold_days: int):
        raise DataAccessError("Membership query failed: OperationalError")


@pytest.fixture()
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture()
def api(client: TestClient, db_session, sender):
    """TestClient whose reminder routes use the test session and fake sender."""
    from app.main import app

    def _db():
        yield db_session

    def _dispatcher() -> ReminderDispatcher:
        return ReminderDispatcher(
            SqlMembershipQueryGateway(db_session, _clock),
            sender,
            NotificationLogWriter(db_session),
            clock=_clock,
        )

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_dispatcher] = _dispatcher
    yield client
    app.dependency_overrides.clear()


def _override_dispatcher(dispatcher: ReminderDispatcher) -> None:
    from app.main import app

    app.dependency_overrides[get_dispatcher] = lambda: dispatcher


# ===========================================================================
# GET preview
# ===========================================================================

class TestPreviewRoute:
    def test_preview_shape(self, api: TestClient, make_membership, sender) -> None:
        membership = make_membership(name="Alice Smith", end_date=TODAY + timedelta(days=3), kind="monthly")
        make_membership(name="Bob Lee", end_date=TODAY + timedelta(days=20))

        response = api.get(URL, params={"days": 7})

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["thresholdDays"] == 7
        assert body["members"] == [
            {
                "membershipId": str(membership.id),
                "memberId": str(membership.member_id),
                "memberName": "Alice Smith",
                "membershipType": "monthly",
                "endDate": "2025-01-04",
                "preferredChannel": "whatsapp",
                "daysLeft": 3,
                "hasChannel": True,
            }
        ]
        assert sender.sent == []

    def test_preview_uses_default_threshold(self, api: TestClient, make_membership) -> None:
        make_membership(end_date=TODAY + timedelta(days=7))

        body = api.get(URL).json()

        assert body["thresholdDays"] == 7
        assert body["count"] == 1

    def test_negative_days_is_bad_request(self, api: TestClient) -> None:
        response = api.get(URL, params={"days": -1})
        assert response.status_code == 400

    def test_non_integer_days_rejected(self, api: TestClient) -> None:
        response = api.get(URL, params={"days": "soon"})
        assert response.status_code == 422


# ===========================================================================
# POST dispatch
# ===========================================================================

class TestDispatchRoute:
    def test_dispatch_shape(self, api: TestClient, make_membership, sender) -> None:
        make_membership(name="Dana Today", end_date=TODAY, whatsapp=None, phone=None)
        make_membership(name="Eli Soon", end_date=TODAY + timedelta(days=4), whatsapp="+12125551234")
        make_membership(name="Fay Soon", end_date=TODAY + timedelta(days=5), whatsapp="+12125551235")
        sender.fail_on = {"+12125551235"}

        response = api.post(URL, json={"daysThreshold": 7})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["batchId"]
        assert (body["totalMembers"], body["sent"], body["failed"]) == (3, 1, 2)
        assert [r["memberName"] for r in body["results"]] == ["Dana Today", "Eli Soon", "Fay Soon"]
        assert [r["status"] for r in body["results"]] == ["no_whatsapp", "sent", "failed"]
        assert [r["daysLeft"] for r in body["results"]] == [0, 4, 5]
        assert body["results"][2]["error"].startswith("rate limited")
        assert "error" not in body["results"][1]

    def test_dispatch_without_body_uses_default(self, api: TestClient, make_membership, sender) -> None:
        make_membership(end_date=TODAY + timedelta(days=7))

        body = api.post(URL).json()

        assert body["totalMembers"] == 1
        assert body["success"] is True
        assert len(sender.sent) == 1

    def test_empty_batch(self, api: TestClient) -> None:
        body = api.post(URL, json={"daysThreshold": 7}).json()

        assert body["success"] is True
        assert body["totalMembers"] == 0
        assert body["results"] == []

    def test_negative_threshold_is_bad_request(self, api: TestClient, sender) -> None:
        response = api.post(URL, json={"daysThreshold": -5})

        assert response.status_code == 400
        assert sender.sent == []

    def test_string_threshold_rejected(self, api: TestClient) -> None:
        response = api.post(URL, json={"daysThreshold": "7"})
        assert response.status_code == 422

    def test_store_failure_is_server_error(self, api: TestClient, db_session, sender) -> None:
        _override_dispatcher(
            ReminderDispatcher(BrokenGateway(), sender, NotificationLogWriter(db_session), clock=_clock)
        )

        response = api.post(URL, json={"daysThreshold": 7})

        assert response.status_code == 500
        assert "query failed" in response.json()["detail"]

    def test_unconfigured_gateway_is_unavailable(self, api: TestClient, db_session, make_membership) -> None:
        make_membership(end_date=TODAY)
        _override_dispatcher(
            ReminderDispatcher(
                SqlMembershipQueryGateway(db_session, _clock),
                RecordingSender(configured=False),
                NotificationLogWriter(db_session),
                clock=_clock,
            )
        )

        response = api.post(URL, json={"daysThreshold": 7})

        assert response.status_code == 503
        assert "not configured" in response.json()["detail"]

    def test_provider_error_with_number_keeps_batch_result(
        self, api: TestClient, db_session, make_membership
    ) -> None:
        make_membership(name="Gil Rejected", end_date=TODAY, whatsapp="+12125551234")
        make_membership(name="Hana Fine", end_date=TODAY + timedelta(days=1), whatsapp="+12125551235")
        sender = WhatsAppSender(
            api_url="https://graph.example.test/v19.0",
            phone_number_id="1055",
            access_token="secret-token",
            timeout_s=5,
        )
        _override_dispatcher(
            ReminderDispatcher(
                SqlMembershipQueryGateway(db_session, _clock),
                sender,
                NotificationLogWriter(db_session),
                clock=_clock,
            )
        )
        rejected = httpx.Response(400, json={"error": {"message": "Request 4155550123 rejected"}})
        accepted = httpx.Response(200, json={"messages": [{"id": "wamid.2"}]})

        with patch("app.notification.whatsapp_sender.httpx.post", side_effect=[rejected, accepted]):
            response = api.post(URL, json={"daysThreshold": 7})

        assert response.status_code == 200
        body = response.json()
        assert (body["sent"], body["failed"]) == (1, 1)
        error = body["results"][0]["error"]
        assert error.startswith("invalid request or destination")
        assert "4155550123" not in error
        assert "[REDACTED]" in error


# ===========================================================================
# Notification log routes
# ===========================================================================

class TestNotificationRoutes:
    def test_recent_lists_batch_rows(self, api: TestClient, make_membership) -> None:
        make_membership(name="Alice", end_date=TODAY)
        make_membership(name="Bob", end_date=TODAY + timedelta(days=1), whatsapp=None)
        batch_id = api.post(URL, json={"daysThreshold": 7}).json()["batchId"]

        rows = api.get("/notifications/recent", params={"batch_id": batch_id}).json()

        assert len(rows) == 2
        assert {r["status"] for r in rows} == {"sent", "failed"}
        assert all(r["batch_id"] == batch_id for r in rows)
        assert all("message_content" not in r for r in rows)

    def test_recent_limit_validated(self, api: TestClient) -> None:
        assert api.get("/notifications/recent", params={"limit": 0}).status_code == 422

    def test_history_for_membership(self, api: TestClient, make_membership) -> None:
        membership = make_membership(end_date=TODAY)
        api.post(URL, json={"daysThreshold": 0})
        api.post(URL, json={"daysThreshold": 0})

        response = api.get(f"/notifications/{membership.id}/history")

        assert response.status_code == 200
        rows = response.json()
        assert len(rows) == 2
        assert rows[0]["batch_id"] != rows[1]["batch_id"]
        assert all(r["channel"] == "whatsapp" for r in rows)

    def test_history_unknown_membership_404(self, api: TestClient) -> None:
        assert api.get("/notifications/does-not-exist/history").status_code == 404

