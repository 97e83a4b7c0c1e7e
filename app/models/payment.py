"""Payment model for one-time Razorpay orders."""

from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class PaymentStatus(str, Enum):
    """Local order payment states. Webhooks may store other provider values."""

    CREATED = "created"
    CAPTURED = "captured"
    FAILED = "failed"


class Payment(Base):
    """Payment model - tracks a Razorpay order and the payment made against it."""

    __tablename__ = "payments"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    order_id = Column(String(64), unique=True, index=True, nullable=False)
    payment_id = Column(String(64), nullable=True, index=True)
    amount = Column(Integer, nullable=False)  # minor units
    currency = Column(String(3), nullable=False, default="INR")
    status = Column(String(20), nullable=False, default=PaymentStatus.CREATED.value)
    signature = Column(String(128), nullable=True)
    email = Column(String(255), nullable=True)
    contact = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
