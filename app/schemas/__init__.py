from app.schemas.payment import OrderCreate, OrderVerify, PaymentResponse
from app.schemas.plan import PlanCreate, PlanResponse
from app.schemas.subscription import (
    SubscriptionCancel,
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionVerify,
)
from app.schemas.webhook import WebhookAck, WebhookEvent

__all__ = [
    "OrderCreate",
    "OrderVerify",
    "PaymentResponse",
    "PlanCreate",
    "PlanResponse",
    "SubscriptionCancel",
    "SubscriptionCreate",
    "SubscriptionResponse",
    "SubscriptionVerify",
    "WebhookAck",
    "WebhookEvent",
]
