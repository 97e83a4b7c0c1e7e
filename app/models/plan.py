from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class PlanPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Plan(Base):
    """Local mirror of a Razorpay plan."""

    __tablename__ = "plans"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    razorpay_plan_id = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Integer, nullable=False)  # minor units (paise)
    currency = Column(String(3), nullable=False, default="INR")
    period = Column(String(20), nullable=False)
    interval = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
