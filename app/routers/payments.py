import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.models.payment import Payment
from app.schemas.payment import OrderCreate, OrderVerify, PaymentResponse
from app.schemas.webhook import WebhookAck
from app.services.order_service import OrderService
from app.services.razorpay_client import RazorpayClient, get_razorpay_client
from app.services.subscription_lifecycle import SubscriptionLifecycleService
from app.services.webhook_dispatcher import WebhookDispatcher, WebhookOutcome

logger = logging.getLogger(__name__)

router = APIRouter()


def get_order_service(
    db: Session = Depends(get_db),
    gateway: RazorpayClient = Depends(get_razorpay_client),
) -> OrderService:
    return OrderService(db, gateway)


@router.post(
    "/orders",
    status_code=201,
    summary="Create one-time order",
    responses={502: {"description": "Razorpay request failed"}},
)
def create_order(
    data: OrderCreate,
    service: OrderService = Depends(get_order_service),
) -> dict[str, Any]:
    """Create a Razorpay order. Returns the provider's order entity."""
    return service.create_order(data)


@router.post(
    "/orders/verify",
    response_model=PaymentResponse,
    summary="Verify one-time order payment",
    responses={
        400: {"description": "Invalid signature"},
        404: {"description": "Order not found"},
    },
)
def verify_order(
    data: OrderVerify,
    service: OrderService = Depends(get_order_service),
) -> Payment:
    return service.verify_order(data)


@router.post("/webhook", response_model=WebhookAck, summary="Razorpay webhook")
async def handle_webhook(
    request: Request,
    razorpay_signature: str | None = Header(None, alias="X-Razorpay-Signature"),
    db: Session = Depends(get_db),
    gateway: RazorpayClient = Depends(get_razorpay_client),
) -> WebhookAck:
    """Receive Razorpay webhook events.

    Always acknowledges: failures are logged by the dispatcher, never
    returned, so Razorpay does not keep redelivering them.
    """
    raw_body = await request.body()

    lifecycle = SubscriptionLifecycleService(db, gateway)
    orders = OrderService(db, gateway)
    dispatcher = WebhookDispatcher({**lifecycle.webhook_handlers(), **orders.webhook_handlers()})

    outcome = dispatcher.handle(raw_body, razorpay_signature, settings.razorpay_webhook_secret)
    if outcome == WebhookOutcome.HANDLER_FAILED:
        db.rollback()
    return WebhookAck()
