from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.plan import PlanPeriod


class PlanCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    amount: int = Field(..., gt=0, description="Amount in minor currency units")
    currency: str = Field(default="INR", min_length=3, max_length=3)
    period: PlanPeriod
    interval: int = Field(default=1, ge=1)


class PlanResponse(BaseModel):
    id: UUID
    razorpay_plan_id: str
    name: str
    description: str | None
    amount: int
    currency: str
    period: PlanPeriod
    interval: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
