from typing import Any

from pydantic import BaseModel, Field


class WebhookEvent(BaseModel):
    """Razorpay webhook envelope. Extra top-level keys are ignored."""

    event: str = Field(..., min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: int | None = None


class WebhookAck(BaseModel):
    received: bool = True
