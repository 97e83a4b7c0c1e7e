from app.models.payment import Payment, PaymentStatus
from app.models.plan import Plan, PlanPeriod
from app.models.subscription import (
    TERMINAL_STATUSES,
    Subscription,
    SubscriptionStatus,
    parse_status,
)

__all__ = [
    "Payment",
    "PaymentStatus",
    "Plan",
    "PlanPeriod",
    "Subscription",
    "SubscriptionStatus",
    "TERMINAL_STATUSES",
    "parse_status",
]
