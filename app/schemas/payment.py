from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class OrderCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Amount in major currency units")
    currency: str = Field(default="INR", min_length=3, max_length=3)


class OrderVerify(BaseModel):
    order_id: str = Field(..., min_length=1, max_length=64)
    payment_id: str = Field(..., min_length=1, max_length=64)
    signature: str = Field(..., min_length=1, max_length=128)


class PaymentResponse(BaseModel):
    id: UUID
    order_id: str
    payment_id: str | None
    amount: int
    currency: str
    status: str
    email: str | None
    contact: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
