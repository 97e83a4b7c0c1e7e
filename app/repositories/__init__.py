from app.repositories.payment_repository import PaymentRepository
from app.repositories.plan_repository import PlanRepository
from app.repositories.subscription_repository import SubscriptionRepository

__all__ = [
    "PaymentRepository",
    "PlanRepository",
    "SubscriptionRepository",
]
