"""
Razorpay orders API client.

Only the two calls the payment flow needs: creating an order for a job and
checking a confirmation signature. Signature checking is local (HMAC with
the key secret); order creation is one authenticated POST.

Usage:
    gateway = RazorpayClient(key_id, key_secret)
    order = gateway.create_order(amount=800, currency="INR", receipt="job_abc")
    ok = gateway.verify_signature(order["id"], payment_id, signature)
"""

from __future__ import annotations

import logging
from typing import Dict, Any, Optional

import requests

from .exceptions import PaymentGatewayError
from .security import verify_payment_signature


class RazorpayClient:
    """
    Thin wrapper over the Razorpay REST API.

    Every HTTP failure (connection error, timeout, non-2xx) is raised as
    PaymentGatewayError; nothing is retried.
    """

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout_seconds: float = 15.0,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.key_id = key_id
        self._key_secret = key_secret
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._session = session or requests.Session()
        self._logger = logger or logging.getLogger("print_vend.core.payment_gateway")

    @property
    def is_configured(self) -> bool:
        return bool(self.key_id and self._key_secret)

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Create a gateway order.

        Args:
            amount: Amount in minor units (paise for INR)
            currency: ISO currency code
            receipt: Merchant reference, e.g. "job_<id>"
            notes: Free-form key/value metadata stored with the order

        Returns:
            Gateway order object; ``id``, ``amount`` and ``currency`` are used

        Raises:
            PaymentGatewayError: On any transport or API failure
        """
        if not self.is_configured:
            raise PaymentGatewayError("Payment gateway is not configured")

        body = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        url = f"{self._base_url}/orders"

        try:
            response = self._session.post(
                url,
                json=body,
                auth=(self.key_id, self._key_secret),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            self._logger.error(f"Gateway request failed for {receipt}: {e}")
            raise PaymentGatewayError(details={"receipt": receipt, "reason": str(e)}) from e

        if not response.ok:
            self._logger.error(
                f"Gateway rejected order for {receipt}: HTTP {response.status_code} {response.text[:200]}"
            )
            raise PaymentGatewayError(
                details={"receipt": receipt, "http_status": response.status_code}
            )

        try:
            order = response.json()
        except ValueError as e:
            raise PaymentGatewayError(details={"receipt": receipt, "reason": "invalid JSON"}) from e

        if "id" not in order:
            raise PaymentGatewayError(details={"receipt": receipt, "reason": "order id missing"})

        self._logger.info(f"Gateway order {order['id']} created for {receipt} ({amount} {currency})")
        return order

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        return verify_payment_signature(self._key_secret, order_id, payment_id, signature)
