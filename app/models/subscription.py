from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String, Text, event, func

from app.core.database import Base
from app.core.errors import UnknownStatusError
from app.models.shared import UUIDType, generate_uuid


class SubscriptionStatus(str, Enum):
    CREATED = "created"
    AUTHENTICATED = "authenticated"
    ACTIVE = "active"
    PENDING = "pending"
    HALTED = "halted"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    EXPIRED = "expired"
    PAUSED = "paused"
    PENDING_CANCELLATION = "pending_cancellation"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset(
    {
        SubscriptionStatus.CANCELLED,
        SubscriptionStatus.COMPLETED,
        SubscriptionStatus.EXPIRED,
    }
)


def parse_status(value: object) -> SubscriptionStatus:
    """Map a provider status string onto the closed status set."""
    try:
        return SubscriptionStatus(str(value).strip().lower())
    except ValueError:
        raise UnknownStatusError(f"Unrecognised subscription status: {value!r}") from None


def is_terminal(status: str | SubscriptionStatus) -> bool:
    return SubscriptionStatus(status) in TERMINAL_STATUSES


def remaining_count_for(total_count: int | None, paid_count: int | None) -> int:
    return max((total_count or 0) - (paid_count or 0), 0)


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    subscription_id = Column(String(64), unique=True, index=True, nullable=False)
    user_id = Column(String(64), nullable=False, index=True)
    plan_id = Column(String(64), nullable=False, index=True)
    customer_id = Column(String(64), nullable=False)
    status = Column(
        String(32), nullable=False, default=SubscriptionStatus.CREATED.value, index=True
    )
    short_url = Column(String(255), nullable=True)

    total_count = Column(Integer, nullable=False, default=0)
    paid_count = Column(Integer, nullable=False, default=0)
    remaining_count = Column(Integer, nullable=False, default=0)

    start_at = Column(DateTime(timezone=True), nullable=True)
    end_at = Column(DateTime(timezone=True), nullable=True)
    current_start = Column(DateTime(timezone=True), nullable=True)
    current_end = Column(DateTime(timezone=True), nullable=True)
    charge_at = Column(DateTime(timezone=True), nullable=True)
    last_payment_id = Column(String(64), nullable=True)
    last_charged_at = Column(DateTime(timezone=True), nullable=True)

    last_failed_payment_id = Column(String(64), nullable=True)
    last_failed_at = Column(DateTime(timezone=True), nullable=True)
    failure_reason = Column(Text, nullable=True)

    activated_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    paused_at = Column(DateTime(timezone=True), nullable=True)
    resumed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    halted_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


@event.listens_for(Subscription, "before_insert")
@event.listens_for(Subscription, "before_update")
def _derive_remaining_count(mapper, connection, target: Subscription) -> None:  # type: ignore[no-untyped-def]
    target.remaining_count = remaining_count_for(target.total_count, target.paid_count)  # type: ignore[assignment]
