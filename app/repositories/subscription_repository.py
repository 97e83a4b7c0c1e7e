from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from app.models.subscription import TERMINAL_STATUSES, Subscription, SubscriptionStatus

_TERMINAL_VALUES = [status.value for status in TERMINAL_STATUSES]


class SubscriptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_subscription_id(self, subscription_id: str) -> Subscription | None:
        return (
            self.db.query(Subscription)
            .filter(Subscription.subscription_id == subscription_id)
            .first()
        )

    def get_for_user(self, subscription_id: str, user_id: str) -> Subscription | None:
        """Load a subscription only if it belongs to ``user_id``."""
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.subscription_id == subscription_id,
                Subscription.user_id == user_id,
            )
            .first()
        )

    def get_by_user(self, user_id: str) -> list[Subscription]:
        return (
            self.db.query(Subscription)
            .filter(Subscription.user_id == user_id)
            .order_by(Subscription.created_at.desc())
            .all()
        )

    def get_open_for_user_plan(self, user_id: str, plan_id: str) -> Subscription | None:
        """Return a non-terminal subscription for the (user, plan) pair, if any."""
        return (
            self.db.query(Subscription)
            .filter(
                Subscription.user_id == user_id,
                Subscription.plan_id == plan_id,
                Subscription.status.notin_(_TERMINAL_VALUES),
            )
            .first()
        )

    def get_customer_id_for_user(self, user_id: str) -> str | None:
        """Provider customer id already created for this user, if any."""
        row = (
            self.db.query(Subscription.customer_id)
            .filter(Subscription.user_id == user_id)
            .order_by(Subscription.created_at.desc())
            .first()
        )
        return row[0] if row else None

    def create(
        self,
        subscription_id: str,
        user_id: str,
        plan_id: str,
        customer_id: str,
        status: SubscriptionStatus,
        **fields: Any,
    ) -> Subscription:
        subscription = Subscription(
            subscription_id=subscription_id,
            user_id=user_id,
            plan_id=plan_id,
            customer_id=customer_id,
            status=status.value,
            **fields,
        )
        self.db.add(subscription)
        self.db.commit()
        self.db.refresh(subscription)
        return subscription

    def update(self, subscription: Subscription, **fields: Any) -> Subscription:
        """Write the given fields and commit.

        ``remaining_count`` is recomputed by the mapper hook on flush.
        """
        for key, value in fields.items():
            if isinstance(value, SubscriptionStatus):
                value = value.value
            setattr(subscription, key, value)
        self.db.commit()
        self.db.refresh(subscription)
        return subscription

    def delete_terminal_before(self, cutoff: datetime) -> int:
        """Delete terminal subscriptions last touched before ``cutoff``."""
        count = (
            self.db.query(Subscription)
            .filter(
                Subscription.status.in_(_TERMINAL_VALUES),
                Subscription.updated_at < cutoff,
            )
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return int(count)
