"""Razorpay REST API client.

Thin wrapper over the plan, customer, subscription, payment and order
endpoints. Responses are returned verbatim (amounts stay in minor units).
Any transport failure or non-2xx response raises ``GatewayError``; nothing
is retried here.
"""

import logging
from typing import Any

import httpx

from app.core.config import settings
from app.core.errors import GatewayError

logger = logging.getLogger(__name__)


class RazorpayClient:
    """Razorpay API client using HTTP basic auth (key id / key secret)."""

    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        self.key_id = key_id or settings.razorpay_key_id
        self.key_secret = key_secret or settings.razorpay_key_secret
        self.base_url = (base_url or settings.razorpay_api_base).rstrip("/")
        self.timeout = timeout or settings.razorpay_timeout_seconds

    def _request(
        self,
        method: str,
        endpoint: str,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an HTTP request to the Razorpay API."""
        if not (self.key_id and self.key_secret):
            raise GatewayError("Razorpay credentials are not configured")
        url = f"{self.base_url}{endpoint}"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.request(
                    method,
                    url,
                    json=data,
                    params=params,
                    auth=(self.key_id, self.key_secret),
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.warning("Razorpay %s %s failed: %s", method, endpoint, exc)
            raise GatewayError(f"Razorpay API request failed: {exc}") from exc

        if resp.status_code >= 400:
            provider_message = _error_description(resp)
            logger.warning(
                "Razorpay %s %s returned %d: %s",
                method,
                endpoint,
                resp.status_code,
                provider_message,
            )
            raise GatewayError(
                f"Razorpay API error: {provider_message}",
                provider_message=provider_message,
            )

        try:
            result = resp.json()
        except ValueError as exc:
            raise GatewayError("Invalid response received from Razorpay") from exc
        if not isinstance(result, dict):
            raise GatewayError("Unexpected response format from Razorpay")
        return result

    # Plans

    def create_plan(
        self,
        name: str,
        amount: int,
        currency: str,
        period: str,
        interval: int,
        description: str | None = None,
    ) -> dict[str, Any]:
        item: dict[str, Any] = {"name": name, "amount": amount, "currency": currency}
        if description:
            item["description"] = description
        return self._request(
            "POST", "/plans", {"period": period, "interval": interval, "item": item}
        )

    def fetch_plan(self, plan_id: str) -> dict[str, Any]:
        return self._request("GET", f"/plans/{plan_id}")

    def list_plans(self, count: int = 10, skip: int = 0) -> dict[str, Any]:
        return self._request("GET", "/plans", params={"count": count, "skip": skip})

    # Customers

    def create_customer(
        self,
        name: str,
        email: str | None = None,
        contact: str | None = None,
        notes: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Create a customer, or return the existing one for the same email/contact."""
        body: dict[str, Any] = {"name": name, "fail_existing": "0"}
        if email:
            body["email"] = email
        if contact:
            body["contact"] = contact
        if notes:
            body["notes"] = notes
        return self._request("POST", "/customers", body)

    def fetch_customer(self, customer_id: str) -> dict[str, Any]:
        return self._request("GET", f"/customers/{customer_id}")

    # Subscriptions

    def create_subscription(
        self,
        plan_id: str,
        total_count: int,
        customer_id: str | None = None,
        customer_notify: bool = True,
        notes: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "plan_id": plan_id,
            "total_count": total_count,
            "quantity": 1,
            "customer_notify": 1 if customer_notify else 0,
        }
        if customer_id:
            body["customer_id"] = customer_id
        if notes:
            body["notes"] = notes
        return self._request("POST", "/subscriptions", body)

    def fetch_subscription(self, subscription_id: str) -> dict[str, Any]:
        return self._request("GET", f"/subscriptions/{subscription_id}")

    def cancel_subscription(
        self, subscription_id: str, cancel_at_cycle_end: bool = False
    ) -> dict[str, Any]:
        return self._request(
            "POST",
            f"/subscriptions/{subscription_id}/cancel",
            {"cancel_at_cycle_end": 1 if cancel_at_cycle_end else 0},
        )

    def pause_subscription(self, subscription_id: str) -> dict[str, Any]:
        return self._request(
            "POST", f"/subscriptions/{subscription_id}/pause", {"pause_at": "now"}
        )

    def resume_subscription(self, subscription_id: str) -> dict[str, Any]:
        return self._request(
            "POST", f"/subscriptions/{subscription_id}/resume", {"resume_at": "now"}
        )

    # Payments and orders

    def fetch_payment(self, payment_id: str) -> dict[str, Any]:
        return self._request("GET", f"/payments/{payment_id}")

    def create_order(self, amount: int, currency: str, receipt: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {"amount": amount, "currency": currency, "payment_capture": 1}
        if receipt:
            body["receipt"] = receipt
        return self._request("POST", "/orders", body)

    def fetch_order(self, order_id: str) -> dict[str, Any]:
        return self._request("GET", f"/orders/{order_id}")


def _error_description(resp: httpx.Response) -> str:
    """Pull ``error.description`` out of a Razorpay error body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:500] if resp.text else f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("description"):
            return str(error["description"])
    return f"HTTP {resp.status_code}"


def get_razorpay_client() -> RazorpayClient:
    """FastAPI dependency returning a client built from settings."""
    return RazorpayClient()
