"""Subscription API tests."""

import hashlib
import hmac
import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.core.auth import create_access_token
from app.core.errors import GatewayError
from app.main import app
from app.models.plan import PlanPeriod
from app.models.subscription import SubscriptionStatus
from app.repositories.plan_repository import PlanRepository
from app.repositories.subscription_repository import SubscriptionRepository
from app.schemas.plan import PlanCreate
from app.services.razorpay_client import RazorpayClient, get_razorpay_client
from tests.conftest import TEST_KEY_SECRET, TEST_WEBHOOK_SECRET


@pytest.fixture
def gateway():
    gw = MagicMock(spec=RazorpayClient)
    gw.create_customer.return_value = {"id": "cust_1"}
    gw.create_subscription.return_value = {
        "id": "sub_api",
        "status": "created",
        "short_url": "https://rzp.io/i/xyz",
        "total_count": 12,
        "paid_count": 0,
    }
    return gw


@pytest.fixture
def client(gateway):
    """Create test client with the Razorpay client replaced."""
    app.dependency_overrides[get_razorpay_client] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.pop(get_razorpay_client, None)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token('user_1', 'reader@example.com')}"}


@pytest.fixture
def other_headers():
    return {"Authorization": f"Bearer {create_access_token('user_2')}"}


@pytest.fixture
def plan(db_session):
    return PlanRepository(db_session).create(
        PlanCreate(name="Monthly", amount=19900, period=PlanPeriod.MONTHLY),
        razorpay_plan_id="plan_monthly",
    )


def create_test_subscription(
    db_session,
    subscription_id: str = "sub_1",
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
    user_id: str = "user_1",
):
    return SubscriptionRepository(db_session).create(
        subscription_id=subscription_id,
        user_id=user_id,
        plan_id="plan_monthly",
        customer_id="cust_1",
        status=status,
        total_count=12,
    )


class TestCreateSubscriptionAPI:
    def test_create(self, client, gateway, auth_headers, plan):
        """Test creating a subscription through the API."""
        response = client.post(
            "/api/subscriptions/create",
            json={"plan_id": "plan_monthly"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["subscription_id"] == "sub_api"
        assert data["status"] == "created"
        assert data["user_id"] == "user_1"
        assert data["short_url"] == "https://rzp.io/i/xyz"
        assert data["remaining_count"] == 12

    def test_requires_auth(self, client, gateway, plan):
        """Test that creation requires authentication."""
        response = client.post("/api/subscriptions/create", json={"plan_id": "plan_monthly"})

        assert response.status_code == 401
        assert response.json()["success"] is False
        gateway.create_subscription.assert_not_called()

    def test_rejects_invalid_token(self, client, plan):
        """Test that an invalid token is rejected."""
        response = client.post(
            "/api/subscriptions/create",
            json={"plan_id": "plan_monthly"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401

    def test_duplicate_returns_conflict(self, client, gateway, auth_headers, plan, db_session):
        """Test that a duplicate open subscription returns 409."""
        create_test_subscription(db_session, status=SubscriptionStatus.AUTHENTICATED)

        response = client.post(
            "/api/subscriptions/create",
            json={"plan_id": "plan_monthly"},
            headers=auth_headers,
        )

        assert response.status_code == 409
        gateway.create_subscription.assert_not_called()

    def test_unknown_plan(self, client, auth_headers):
        """Test creating against an unknown plan returns 404."""
        response = client.post(
            "/api/subscriptions/create",
            json={"plan_id": "plan_missing"},
            headers=auth_headers,
        )
        assert response.status_code == 404

    def test_missing_plan_id_is_field_error(self, client, auth_headers):
        """Test that a missing plan_id is reported as a field error."""
        response = client.post("/api/subscriptions/create", json={}, headers=auth_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["errors"][0]["field"] == "plan_id"


class TestVerifySubscriptionAPI:
    def test_bad_signature_returns_400_and_marks_failed(self, client, gateway, db_session):
        """Test a bad checkout signature returns 400 and marks the record failed."""
        create_test_subscription(db_session, status=SubscriptionStatus.CREATED)

        response = client.post(
            "/api/subscriptions/verify",
            json={
                "razorpay_payment_id": "pay_1",
                "razorpay_subscription_id": "sub_1",
                "razorpay_signature": "bad",
            },
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid payment signature"
        db_session.expire_all()
        subscription = SubscriptionRepository(db_session).get_by_subscription_id("sub_1")
        assert subscription.status == "failed"
        assert subscription.failure_reason == "Invalid signature"

    def test_valid_signature_activates(self, client, gateway, db_session):
        """Test that a valid checkout signature activates the subscription."""
        create_test_subscription(db_session, status=SubscriptionStatus.CREATED)
        gateway.fetch_subscription.return_value = {
            "id": "sub_1",
            "status": "active",
            "total_count": 12,
            "paid_count": 1,
        }
        gateway.fetch_payment.return_value = {"id": "pay_1", "created_at": 1760000000}
        signature = hmac.new(TEST_KEY_SECRET.encode(), b"pay_1|sub_1", hashlib.sha256).hexdigest()

        response = client.post(
            "/api/subscriptions/verify",
            json={
                "razorpay_payment_id": "pay_1",
                "razorpay_subscription_id": "sub_1",
                "razorpay_signature": signature,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "active"
        assert data["last_payment_id"] == "pay_1"
        assert data["remaining_count"] == 11
        assert data["activated_at"] is not None


class TestSubscriptionReadAPI:
    def test_list_user_subscriptions(self, client, auth_headers, db_session):
        """Test listing the current user's subscriptions."""
        create_test_subscription(db_session, "sub_a")
        create_test_subscription(db_session, "sub_b", user_id="user_2")

        response = client.get("/api/subscriptions/user/all", headers=auth_headers)

        assert response.status_code == 200
        assert [s["subscription_id"] for s in response.json()] == ["sub_a"]

    def test_get_own_subscription(self, client, auth_headers, db_session):
        """Test getting one of the user's subscriptions."""
        create_test_subscription(db_session)

        response = client.get("/api/subscriptions/sub_1", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["subscription_id"] == "sub_1"

    def test_get_other_users_subscription(self, client, other_headers, db_session):
        """Test that another user's subscription is not found."""
        create_test_subscription(db_session)

        response = client.get("/api/subscriptions/sub_1", headers=other_headers)

        assert response.status_code == 404


class TestSubscriptionActionsAPI:
    def test_cancel_at_cycle_end(self, client, gateway, auth_headers, db_session):
        """Test cancelling at cycle end through the API."""
        create_test_subscription(db_session)
        gateway.cancel_subscription.return_value = {"id": "sub_1", "status": "active"}

        response = client.post(
            "/api/subscriptions/sub_1/cancel",
            json={"cancel_at_cycle_end": True},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "pending_cancellation"
        gateway.cancel_subscription.assert_called_once_with("sub_1", True)

    def test_cancel_without_body(self, client, gateway, auth_headers, db_session):
        """Test that cancel without a body cancels immediately."""
        create_test_subscription(db_session)
        gateway.cancel_subscription.return_value = {"id": "sub_1", "status": "cancelled"}

        response = client.post("/api/subscriptions/sub_1/cancel", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["cancelled_at"] is not None

    def test_cancel_from_paused_is_rejected(self, client, gateway, auth_headers, db_session):
        """Test that cancelling a paused subscription is rejected."""
        create_test_subscription(db_session, status=SubscriptionStatus.PAUSED)

        response = client.post("/api/subscriptions/sub_1/cancel", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["errors"] == [{"field": "status", "message": "paused"}]
        gateway.cancel_subscription.assert_not_called()

    def test_pause_and_resume(self, client, gateway, auth_headers, db_session):
        """Test pausing and resuming through the API."""
        create_test_subscription(db_session)
        gateway.pause_subscription.return_value = {"id": "sub_1", "status": "paused"}
        gateway.resume_subscription.return_value = {"id": "sub_1", "status": "active"}

        paused = client.post("/api/subscriptions/sub_1/pause", headers=auth_headers)
        assert paused.status_code == 200
        assert paused.json()["status"] == "paused"

        resumed = client.post("/api/subscriptions/sub_1/resume", headers=auth_headers)
        assert resumed.status_code == 200
        assert resumed.json()["status"] == "active"

    def test_gateway_error_returns_502(self, client, gateway, auth_headers, db_session):
        """Test that Razorpay failures return 502."""
        create_test_subscription(db_session)
        gateway.pause_subscription.side_effect = GatewayError(
            "Razorpay API error: bad request", provider_message="bad request"
        )

        response = client.post("/api/subscriptions/sub_1/pause", headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["success"] is False


class TestSubscriptionFlowAPI:
    def test_create_verify_charge_cancel(self, client, gateway, auth_headers, plan, db_session):
        """One subscription goes from checkout through a renewal to cancellation."""
        created = client.post(
            "/api/subscriptions/create",
            json={"plan_id": "plan_monthly"},
            headers=auth_headers,
        )
        assert created.status_code == 201
        assert created.json()["status"] == "created"

        gateway.fetch_subscription.return_value = {
            "id": "sub_api",
            "status": "active",
            "total_count": 12,
            "paid_count": 1,
        }
        gateway.fetch_payment.return_value = {"id": "pay_1", "created_at": 1760000000}
        signature = hmac.new(
            TEST_KEY_SECRET.encode(), b"pay_1|sub_api", hashlib.sha256
        ).hexdigest()
        verified = client.post(
            "/api/subscriptions/verify",
            json={
                "razorpay_payment_id": "pay_1",
                "razorpay_subscription_id": "sub_api",
                "razorpay_signature": signature,
            },
        )
        assert verified.status_code == 200
        assert verified.json()["status"] == "active"
        assert verified.json()["paid_count"] == 1

        body = json.dumps(
            {
                "event": "subscription.charged",
                "payload": {
                    "subscription": {
                        "entity": {
                            "id": "sub_api",
                            "status": "active",
                            "total_count": 12,
                            "paid_count": 2,
                        }
                    },
                    "payment": {"entity": {"id": "pay_2", "created_at": 1762592000}},
                },
            }
        ).encode()
        charged = client.post(
            "/api/payments/webhook",
            content=body,
            headers={
                "Content-Type": "application/json",
                "X-Razorpay-Signature": hmac.new(
                    TEST_WEBHOOK_SECRET.encode(), body, hashlib.sha256
                ).hexdigest(),
            },
        )
        assert charged.json() == {"received": True}

        current = client.get("/api/subscriptions/sub_api", headers=auth_headers).json()
        assert current["paid_count"] == 2
        assert current["remaining_count"] == current["total_count"] - 2
        assert current["last_payment_id"] == "pay_2"

        gateway.cancel_subscription.return_value = {"id": "sub_api", "status": "cancelled"}
        cancelled = client.post(
            "/api/subscriptions/sub_api/cancel",
            json={"cancel_at_cycle_end": False},
            headers=auth_headers,
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "cancelled"
        assert cancelled.json()["cancelled_at"] is not None
        gateway.cancel_subscription.assert_called_once_with("sub_api", False)
