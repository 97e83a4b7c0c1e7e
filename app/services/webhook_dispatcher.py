"""Inbound Razorpay webhook dispatch.

The dispatcher verifies the signature, decodes the event envelope and hands
the payload to one handler from a mapping fixed at construction time.

Nothing here raises to the caller. Razorpay retries aggressively on any
non-2xx response, so the webhook endpoint always acknowledges and every
failure is reported through logging instead. Operators watch the
``app.services.webhook_dispatcher`` logger, not response codes.
"""

import json
import logging
from collections.abc import Callable, Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from app.schemas.webhook import WebhookEvent
from app.services.signature import verify_signature

logger = logging.getLogger(__name__)

WebhookHandler = Callable[[dict[str, Any]], None]


class WebhookOutcome(str, Enum):
    PROCESSED = "processed"
    MISCONFIGURED = "misconfigured"
    MISSING_INPUT = "missing_input"
    INVALID_SIGNATURE = "invalid_signature"
    MALFORMED = "malformed"
    IGNORED = "ignored"
    HANDLER_FAILED = "handler_failed"


class WebhookDispatcher:
    """Route verified webhook events to their reconciliation handlers."""

    def __init__(self, handlers: Mapping[str, WebhookHandler]):
        self.handlers: Mapping[str, WebhookHandler] = MappingProxyType(dict(handlers))

    def handle(
        self,
        raw_body: bytes | None,
        received_signature: str | None,
        secret: str | None,
    ) -> WebhookOutcome:
        if not secret:
            logger.error("Webhook secret not configured; event dropped")
            return WebhookOutcome.MISCONFIGURED
        if not received_signature:
            logger.warning("Webhook received without signature header; event dropped")
            return WebhookOutcome.MISSING_INPUT
        if not raw_body:
            logger.warning("Webhook received with empty body; event dropped")
            return WebhookOutcome.MISSING_INPUT

        if not verify_signature(raw_body, received_signature, secret):
            logger.warning("Invalid webhook signature; event dropped")
            return WebhookOutcome.INVALID_SIGNATURE

        try:
            event = WebhookEvent.model_validate(json.loads(raw_body))
        except (ValueError, PydanticValidationError) as exc:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
            logger.warning("Malformed webhook payload: %s", exc)
            return WebhookOutcome.MALFORMED

        handler = self.handlers.get(event.event)
        if handler is None:
            logger.info("No handler for webhook event %s; ignored", event.event)
            return WebhookOutcome.IGNORED

        try:
            handler(event.payload)
        except Exception:
            logger.exception("Webhook handler for %s failed", event.event)
            return WebhookOutcome.HANDLER_FAILED

        logger.info("Webhook event %s processed", event.event)
        return WebhookOutcome.PROCESSED
