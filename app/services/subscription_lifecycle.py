"""Subscription lifecycle: user actions and webhook reconciliation.

User actions (create, cancel, pause, resume) check the local status against
a fixed allowed set before touching the gateway, so a rejected action leaves
no partial state. Webhook handlers apply whatever Razorpay reports, except
that a record in a terminal status never moves to a different status.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from sqlalchemy.orm import Session

from app.core.auth import CurrentUser
from app.core.config import settings
from app.core.errors import (
    ConflictError,
    GatewayError,
    InvalidStateTransition,
    NotFoundError,
    SignatureError,
    UnknownStatusError,
)
from app.models.shared import from_timestamp, utc_now
from app.models.subscription import (
    TERMINAL_STATUSES,
    Subscription,
    SubscriptionStatus,
    parse_status,
)
from app.repositories.plan_repository import PlanRepository
from app.repositories.subscription_repository import SubscriptionRepository
from app.schemas.subscription import SubscriptionCreate, SubscriptionVerify
from app.services.razorpay_client import RazorpayClient
from app.services.signature import verify_payment_signature
from app.services.webhook_dispatcher import WebhookHandler

logger = logging.getLogger(__name__)

ACTION_ALLOWED_STATUSES: Mapping[str, frozenset[SubscriptionStatus]] = MappingProxyType(
    {
        "cancel": frozenset(
            {
                SubscriptionStatus.ACTIVE,
                SubscriptionStatus.AUTHENTICATED,
                SubscriptionStatus.PENDING,
            }
        ),
        "pause": frozenset({SubscriptionStatus.ACTIVE}),
        "resume": frozenset({SubscriptionStatus.PAUSED}),
    }
)

# Event name -> handler method. Bound to a service instance per request.
SUBSCRIPTION_EVENT_HANDLERS: Mapping[str, str] = MappingProxyType(
    {
        "subscription.authenticated": "handle_authenticated",
        "subscription.activated": "handle_activated",
        "subscription.charged": "handle_charged",
        "subscription.completed": "handle_completed",
        "subscription.cancelled": "handle_cancelled",
        "subscription.paused": "handle_paused",
        "subscription.resumed": "handle_resumed",
        "subscription.pending": "handle_pending",
        "subscription.halted": "handle_halted",
        "payment.failed": "handle_payment_failed",
    }
)

_COUNT_FIELDS = ("total_count", "paid_count")
_CYCLE_FIELDS = ("current_start", "current_end", "charge_at")
_TIMESTAMP_FIELDS = ("start_at", "end_at", *_CYCLE_FIELDS)


def _entity(payload: dict[str, Any], name: str) -> dict[str, Any]:
    """Extract ``payload[name]["entity"]``, tolerating missing levels."""
    container = payload.get(name) or {}
    entity = container.get("entity") if isinstance(container, dict) else None
    return entity if isinstance(entity, dict) else {}


def _count_fields(entity: dict[str, Any]) -> dict[str, Any]:
    return {key: int(entity[key]) for key in _COUNT_FIELDS if entity.get(key) is not None}


def _timestamp_fields(entity: dict[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    return {key: from_timestamp(entity[key]) for key in keys if key in entity}


def _billing_fields(entity: dict[str, Any]) -> dict[str, Any]:
    """Counters and billing timestamps carried by a subscription entity."""
    return {**_count_fields(entity), **_timestamp_fields(entity, _TIMESTAMP_FIELDS)}


def _gateway_status(remote: dict[str, Any]) -> SubscriptionStatus:
    try:
        return parse_status(remote.get("status"))
    except UnknownStatusError as exc:
        raise GatewayError(str(exc)) from exc


class SubscriptionLifecycleService:
    """Orchestrates subscription actions against Razorpay and the local store."""

    def __init__(
        self,
        db: Session,
        gateway: RazorpayClient | None = None,
        key_secret: str | None = None,
    ):
        self.db = db
        self.gateway = gateway or RazorpayClient()
        self.key_secret = key_secret or settings.razorpay_key_secret
        self.subscription_repo = SubscriptionRepository(db)
        self.plan_repo = PlanRepository(db)

    # Reads

    def list_for_user(self, user_id: str) -> list[Subscription]:
        return self.subscription_repo.get_by_user(user_id)

    def get_for_user(self, subscription_id: str, user_id: str) -> Subscription:
        subscription = self.subscription_repo.get_for_user(subscription_id, user_id)
        if subscription is None:
            raise NotFoundError(f"Subscription {subscription_id} not found")
        return subscription

    # User actions

    def create_subscription(self, user: CurrentUser, data: SubscriptionCreate) -> Subscription:
        """Create a Razorpay subscription for ``user`` and mirror it locally.

        1. Reject if the user already holds a non-terminal subscription to the plan
        2. Require the plan to be known locally and active
        3. Reuse the user's Razorpay customer, or create one
        4. Create the subscription at Razorpay and store it with its reported status
        """
        existing = self.subscription_repo.get_open_for_user_plan(user.id, data.plan_id)
        if existing is not None:
            raise ConflictError(
                "An active subscription for this plan already exists",
                errors=[{"field": "plan_id", "message": str(existing.subscription_id)}],
            )

        plan = self.plan_repo.get_by_razorpay_id(data.plan_id)
        if plan is None or not plan.is_active:
            raise NotFoundError(f"Plan {data.plan_id} not found")

        customer_id = self.subscription_repo.get_customer_id_for_user(user.id)
        if customer_id is None:
            customer = self.gateway.create_customer(
                name=data.customer_name or user.email or user.id,
                email=user.email,
                contact=data.customer_contact,
                notes={"user_id": user.id},
            )
            customer_id = customer.get("id")
            if not customer_id:
                raise GatewayError("Razorpay did not return a customer id")

        total_count = data.total_count or settings.subscription_default_total_count
        remote = self.gateway.create_subscription(
            plan_id=data.plan_id,
            total_count=total_count,
            customer_id=customer_id,
            customer_notify=data.customer_notify,
            notes={"user_id": user.id},
        )
        if not remote.get("id"):
            raise GatewayError("Razorpay did not return a subscription id")
        status = _gateway_status(remote)

        fields = _billing_fields(remote)
        fields.setdefault("total_count", total_count)
        subscription = self.subscription_repo.create(
            subscription_id=str(remote["id"]),
            user_id=user.id,
            plan_id=data.plan_id,
            customer_id=str(customer_id),
            status=status,
            short_url=remote.get("short_url"),
            **fields,
        )
        logger.info(
            "Created subscription %s for user %s on plan %s",
            subscription.subscription_id,
            user.id,
            data.plan_id,
        )
        return subscription

    def verify_payment(self, data: SubscriptionVerify) -> Subscription:
        """Confirm the checkout callback for a subscription's authorisation payment.

        On a signature mismatch the record is marked ``failed`` before the
        error is raised. On a match the subscription and payment are re-read
        from Razorpay and every billing field is refreshed.
        """
        subscription = self.subscription_repo.get_by_subscription_id(
            data.razorpay_subscription_id
        )
        if subscription is None:
            raise NotFoundError(f"Subscription {data.razorpay_subscription_id} not found")

        current = SubscriptionStatus(subscription.status)
        if current in TERMINAL_STATUSES:
            raise InvalidStateTransition(current.value, "verify")

        if not verify_payment_signature(
            data.razorpay_payment_id,
            data.razorpay_subscription_id,
            data.razorpay_signature,
            self.key_secret,
        ):
            self.subscription_repo.update(
                subscription,
                status=SubscriptionStatus.FAILED,
                failure_reason="Invalid signature",
                last_failed_payment_id=data.razorpay_payment_id,
                last_failed_at=utc_now(),
            )
            logger.warning(
                "Invalid payment signature for subscription %s (payment %s)",
                data.razorpay_subscription_id,
                data.razorpay_payment_id,
            )
            raise SignatureError("Invalid payment signature")

        remote = self.gateway.fetch_subscription(data.razorpay_subscription_id)
        payment = self.gateway.fetch_payment(data.razorpay_payment_id)
        status = _gateway_status(remote)

        fields = _billing_fields(remote)
        fields["status"] = status
        fields["last_payment_id"] = payment.get("id") or data.razorpay_payment_id
        fields["last_charged_at"] = from_timestamp(payment.get("created_at")) or utc_now()
        if status == SubscriptionStatus.ACTIVE and subscription.activated_at is None:
            fields["activated_at"] = utc_now()

        subscription = self.subscription_repo.update(subscription, **fields)
        logger.info(
            "Verified payment %s for subscription %s, status %s",
            data.razorpay_payment_id,
            subscription.subscription_id,
            status.value,
        )
        return subscription

    def cancel_subscription(
        self, subscription_id: str, user_id: str, cancel_at_cycle_end: bool = False
    ) -> Subscription:
        subscription = self._load_for_action(subscription_id, user_id, "cancel")
        remote = self.gateway.cancel_subscription(subscription_id, cancel_at_cycle_end)

        fields: dict[str, Any]
        if cancel_at_cycle_end:
            fields = {"status": SubscriptionStatus.PENDING_CANCELLATION}
        else:
            fields = {"status": SubscriptionStatus.CANCELLED, "cancelled_at": utc_now()}
            if remote.get("ended_at"):
                fields["end_at"] = from_timestamp(remote["ended_at"])

        subscription = self.subscription_repo.update(subscription, **fields)
        logger.info(
            "Cancelled subscription %s (at cycle end: %s)", subscription_id, cancel_at_cycle_end
        )
        return subscription

    def pause_subscription(self, subscription_id: str, user_id: str) -> Subscription:
        subscription = self._load_for_action(subscription_id, user_id, "pause")
        self.gateway.pause_subscription(subscription_id)
        subscription = self.subscription_repo.update(
            subscription, status=SubscriptionStatus.PAUSED, paused_at=utc_now()
        )
        logger.info("Paused subscription %s", subscription_id)
        return subscription

    def resume_subscription(self, subscription_id: str, user_id: str) -> Subscription:
        subscription = self._load_for_action(subscription_id, user_id, "resume")
        self.gateway.resume_subscription(subscription_id)
        subscription = self.subscription_repo.update(
            subscription, status=SubscriptionStatus.ACTIVE, resumed_at=utc_now()
        )
        logger.info("Resumed subscription %s", subscription_id)
        return subscription

    def _load_for_action(self, subscription_id: str, user_id: str, action: str) -> Subscription:
        subscription = self.get_for_user(subscription_id, user_id)
        current = SubscriptionStatus(subscription.status)
        if current not in ACTION_ALLOWED_STATUSES[action]:
            raise InvalidStateTransition(current.value, action)
        return subscription

    # Webhook reconciliation

    def webhook_handlers(self) -> Mapping[str, WebhookHandler]:
        """Bind the static event registry to this service instance."""
        return MappingProxyType(
            {event: getattr(self, method) for event, method in SUBSCRIPTION_EVENT_HANDLERS.items()}
        )

    def handle_authenticated(self, payload: dict[str, Any]) -> None:
        self._reconcile("subscription.authenticated", payload, SubscriptionStatus.AUTHENTICATED)

    def handle_activated(self, payload: dict[str, Any]) -> None:
        entity = _entity(payload, "subscription")
        self._reconcile(
            "subscription.activated",
            payload,
            SubscriptionStatus.ACTIVE,
            fields=_billing_fields(entity),
            stamp="activated_at",
        )

    def handle_charged(self, payload: dict[str, Any]) -> None:
        """Apply a successful recurring charge.

        Every written value comes from the event, so replaying the same
        delivery leaves the record unchanged.
        """
        entity = _entity(payload, "subscription")
        payment = _entity(payload, "payment")
        fields = {**_count_fields(entity), **_timestamp_fields(entity, _CYCLE_FIELDS)}
        if payment.get("id"):
            fields["last_payment_id"] = payment["id"]
            if payment.get("created_at"):
                fields["last_charged_at"] = from_timestamp(payment["created_at"])
        status = parse_status(entity["status"]) if entity.get("status") else None
        self._reconcile("subscription.charged", payload, status, fields=fields)

    def handle_completed(self, payload: dict[str, Any]) -> None:
        entity = _entity(payload, "subscription")
        fields = {}
        ended = entity.get("ended_at") or entity.get("end_at")
        if ended:
            fields["end_at"] = from_timestamp(ended)
        self._reconcile(
            "subscription.completed",
            payload,
            SubscriptionStatus.COMPLETED,
            fields=fields,
            stamp="completed_at",
        )

    def handle_cancelled(self, payload: dict[str, Any]) -> None:
        entity = _entity(payload, "subscription")
        fields = {}
        ended = entity.get("ended_at") or entity.get("end_at")
        if ended:
            fields["end_at"] = from_timestamp(ended)
        self._reconcile(
            "subscription.cancelled",
            payload,
            SubscriptionStatus.CANCELLED,
            fields=fields,
            stamp="cancelled_at",
        )

    def handle_paused(self, payload: dict[str, Any]) -> None:
        entity = _entity(payload, "subscription")
        self._reconcile(
            "subscription.paused",
            payload,
            SubscriptionStatus.PAUSED,
            fields=_timestamp_fields(entity, _CYCLE_FIELDS),
            stamp="paused_at",
        )

    def handle_resumed(self, payload: dict[str, Any]) -> None:
        entity = _entity(payload, "subscription")
        self._reconcile(
            "subscription.resumed",
            payload,
            SubscriptionStatus.ACTIVE,
            fields=_timestamp_fields(entity, _CYCLE_FIELDS),
            stamp="resumed_at",
        )

    def handle_pending(self, payload: dict[str, Any]) -> None:
        self._reconcile("subscription.pending", payload, SubscriptionStatus.PENDING)

    def handle_halted(self, payload: dict[str, Any]) -> None:
        self._reconcile(
            "subscription.halted", payload, SubscriptionStatus.HALTED, stamp="halted_at"
        )

    def handle_payment_failed(self, payload: dict[str, Any]) -> None:
        """Record a failed charge attempt without changing the status."""
        payment = _entity(payload, "payment")
        subscription_id = payment.get("subscription_id") or _entity(payload, "subscription").get(
            "id"
        )
        if not subscription_id:
            logger.info("payment.failed for %s is not a subscription payment", payment.get("id"))
            return
        fields = {
            "last_failed_payment_id": payment.get("id"),
            "last_failed_at": from_timestamp(payment.get("created_at")) or utc_now(),
            "failure_reason": payment.get("error_description")
            or payment.get("error_reason")
            or "Payment failed",
        }
        self._reconcile(
            "payment.failed", payload, None, fields=fields, subscription_id=subscription_id
        )

    def _reconcile(
        self,
        event: str,
        payload: dict[str, Any],
        target: SubscriptionStatus | None,
        fields: dict[str, Any] | None = None,
        stamp: str | None = None,
        subscription_id: str | None = None,
    ) -> None:
        """Write an event's fields to the local record.

        ``stamp`` names a lifecycle timestamp set to now, only when the status
        actually changes. Records in a terminal status accept only events that
        target that same status.
        """
        subscription_id = subscription_id or _entity(payload, "subscription").get("id")
        if not subscription_id:
            logger.warning("%s payload carries no subscription id", event)
            return

        subscription = self.subscription_repo.get_by_subscription_id(subscription_id)
        if subscription is None:
            logger.warning("Subscription %s not found for %s", subscription_id, event)
            return

        current = SubscriptionStatus(subscription.status)
        if current in TERMINAL_STATUSES and target != current:
            logger.warning(
                "Ignoring %s for subscription %s in terminal status %s",
                event,
                subscription_id,
                current.value,
            )
            return

        updates = dict(fields or {})
        if target is not None:
            updates["status"] = target
            if stamp and target != current:
                updates[stamp] = utc_now()

        self.subscription_repo.update(subscription, **updates)
        logger.info(
            "Applied %s to subscription %s (%s -> %s)",
            event,
            subscription_id,
            current.value,
            (target or current).value,
        )
