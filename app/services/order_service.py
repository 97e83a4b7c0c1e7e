"""One-time orders: creation, checkout verification and capture webhooks."""

import logging
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Any

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import GatewayError, NotFoundError, SignatureError
from app.models.payment import Payment, PaymentStatus
from app.repositories.payment_repository import PaymentRepository
from app.schemas.payment import OrderCreate, OrderVerify
from app.services.razorpay_client import RazorpayClient
from app.services.signature import verify_order_signature
from app.services.webhook_dispatcher import WebhookHandler

logger = logging.getLogger(__name__)


def to_minor_units(amount: Decimal) -> int:
    """Convert a major-unit amount (rupees) to minor units (paise)."""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class OrderService:
    def __init__(
        self,
        db: Session,
        gateway: RazorpayClient | None = None,
        key_secret: str | None = None,
    ):
        self.db = db
        self.gateway = gateway or RazorpayClient()
        self.key_secret = key_secret or settings.razorpay_key_secret
        self.payment_repo = PaymentRepository(db)

    def create_order(self, data: OrderCreate) -> dict[str, Any]:
        """Create the order at Razorpay and record it as ``created``.

        Returns the provider's order entity, which the checkout needs.
        """
        amount = to_minor_units(data.amount)
        currency = data.currency.upper()
        remote = self.gateway.create_order(amount=amount, currency=currency)
        order_id = remote.get("id")
        if not order_id:
            raise GatewayError("Razorpay did not return an order id")

        self.payment_repo.create(order_id=order_id, amount=amount, currency=currency)
        logger.info("Created order %s for %d %s", order_id, amount, currency)
        return remote

    def verify_order(self, data: OrderVerify) -> Payment:
        payment = self.payment_repo.get_by_order_id(data.order_id)
        if payment is None:
            raise NotFoundError(f"Order {data.order_id} not found")

        if not verify_order_signature(
            data.order_id, data.payment_id, data.signature, self.key_secret
        ):
            self.payment_repo.update(
                payment,
                payment_id=data.payment_id,
                status=PaymentStatus.FAILED.value,
            )
            logger.warning("Invalid payment signature for order %s", data.order_id)
            raise SignatureError("Invalid payment signature")

        payment = self.payment_repo.update(
            payment,
            payment_id=data.payment_id,
            signature=data.signature,
            status=PaymentStatus.CAPTURED.value,
        )
        logger.info("Verified payment %s for order %s", data.payment_id, data.order_id)
        return payment

    def webhook_handlers(self) -> Mapping[str, WebhookHandler]:
        return MappingProxyType({"payment.captured": self.handle_payment_captured})

    def handle_payment_captured(self, payload: dict[str, Any]) -> None:
        """Upsert the order payment from a captured payment entity.

        Subscription charges are also delivered as ``payment.captured``; those
        carry an invoice or subscription id and are reconciled through
        ``subscription.charged`` instead.
        """
        container = payload.get("payment") or {}
        entity = container.get("entity") or {}
        order_id = entity.get("order_id")
        if entity.get("subscription_id") or entity.get("invoice_id"):
            logger.info("payment.captured for %s belongs to a subscription", entity.get("id"))
            return
        if not order_id:
            logger.warning("payment.captured payload carries no order id")
            return

        fields: dict[str, Any] = {
            "payment_id": entity.get("id"),
            "status": entity.get("status") or PaymentStatus.CAPTURED.value,
        }
        if entity.get("amount") is not None:
            fields["amount"] = int(entity["amount"])
        if entity.get("currency"):
            fields["currency"] = entity["currency"]
        for key in ("email", "contact"):
            if entity.get(key):
                fields[key] = entity[key]

        self.payment_repo.upsert(order_id, **fields)
        logger.info("Recorded captured payment %s for order %s", entity.get("id"), order_id)
