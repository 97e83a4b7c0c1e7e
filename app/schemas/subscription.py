from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.subscription import SubscriptionStatus


class SubscriptionCreate(BaseModel):
    plan_id: str = Field(..., min_length=1, max_length=64, description="Razorpay plan id")
    total_count: int | None = Field(
        default=None,
        ge=1,
        description="Number of billing cycles. Defaults to the configured count.",
    )
    customer_name: str | None = Field(default=None, max_length=255)
    customer_contact: str | None = Field(default=None, max_length=32)
    customer_notify: bool = True


class SubscriptionVerify(BaseModel):
    razorpay_payment_id: str = Field(..., min_length=1, max_length=64)
    razorpay_subscription_id: str = Field(..., min_length=1, max_length=64)
    razorpay_signature: str = Field(..., min_length=1, max_length=128)


class SubscriptionCancel(BaseModel):
    cancel_at_cycle_end: bool = False


class SubscriptionResponse(BaseModel):
    id: UUID
    subscription_id: str
    user_id: str
    plan_id: str
    customer_id: str
    status: SubscriptionStatus
    short_url: str | None
    total_count: int
    paid_count: int
    remaining_count: int
    start_at: datetime | None
    end_at: datetime | None
    current_start: datetime | None
    current_end: datetime | None
    charge_at: datetime | None
    last_payment_id: str | None
    last_charged_at: datetime | None
    last_failed_payment_id: str | None
    last_failed_at: datetime | None
    failure_reason: str | None
    activated_at: datetime | None
    cancelled_at: datetime | None
    paused_at: datetime | None
    resumed_at: datetime | None
    completed_at: datetime | None
    halted_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
