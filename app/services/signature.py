"""HMAC-SHA256 signature checks for Razorpay callbacks and webhooks."""

import hashlib
import hmac


def generate_hmac_signature(payload_bytes: bytes, secret: str) -> str:
    """Generate the hex HMAC-SHA256 of ``payload_bytes`` under ``secret``."""
    return hmac.new(
        secret.encode("utf-8"),
        payload_bytes,
        hashlib.sha256,
    ).hexdigest()


def verify_signature(raw_body: bytes, received_signature: str, secret: str) -> bool:
    """Check a signature over the exact raw request bytes.

    The body must be the bytes as received: re-serialising parsed JSON
    changes the layout and breaks the comparison. Never raises.
    """
    if not secret or not isinstance(secret, str):
        return False
    if not isinstance(raw_body, (bytes, bytearray)) or not isinstance(received_signature, str):
        return False
    if not received_signature:
        return False
    try:
        expected = generate_hmac_signature(bytes(raw_body), secret)
        return hmac.compare_digest(expected, received_signature)
    except (TypeError, ValueError):
        # compare_digest rejects non-ASCII str input
        return False


def verify_payment_signature(
    payment_id: str, subscription_id: str, signature: str, secret: str
) -> bool:
    """Checkout callback for subscriptions signs ``payment_id|subscription_id``."""
    return verify_signature(f"{payment_id}|{subscription_id}".encode(), signature, secret)


def verify_order_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    """Checkout callback for one-time orders signs ``order_id|payment_id``."""
    return verify_signature(f"{order_id}|{payment_id}".encode(), signature, secret)

