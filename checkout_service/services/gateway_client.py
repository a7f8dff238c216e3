"""
Payment Gateway Client

HTTP client for a Razorpay-compatible orders API. Creates the hosted
payment order a storefront needs to collect card/UPI/netbanking payments,
and verifies the signature the gateway returns after payment.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from .errors import GatewayError, GatewayNotConfigured

logger = logging.getLogger(__name__)


@dataclass
class GatewayOrder:
    """Order object created on the gateway"""
    id: str
    amount: int  # minor units
    currency: str
    receipt: str
    status: str


class GatewayClient:
    """
    Client for the payment gateway orders API.

    Usage:
        client = GatewayClient(base_url, key_id, key_secret)
        order = await client.create_order(amount=210000, currency="INR", receipt="ORD-...")
        ...
        await client.close()
    """

    def __init__(
        self,
        base_url: str,
        key_id: Optional[str],
        key_secret: Optional[str],
        timeout: float = 10.0,
        retry_on_timeout: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize gateway client.

        Args:
            base_url: Base URL of the gateway API
            key_id: Public key id, also handed to the browser checkout
            key_secret: Secret used for basic auth and signature checks
            timeout: Per-request timeout in seconds
            retry_on_timeout: Retry once after a timeout. Only safe when the
                gateway de-duplicates orders by receipt.
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.key_id = key_id
        self._key_secret = key_secret
        self.timeout = timeout
        self.retry_on_timeout = retry_on_timeout
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def configured(self) -> bool:
        return bool(self.key_id and self._key_secret)

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                auth=(self.key_id or "", self._key_secret or ""),
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client"""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _post(self, path: str, body: dict[str, Any]) -> httpx.Response:
        url = f"{self.base_url}{path}"
        attempts = 2 if self.retry_on_timeout else 1

        for attempt in range(1, attempts + 1):
            try:
                return await self._client().post(url, json=body)
            except httpx.TimeoutException as e:
                logger.warning(f"Gateway timeout on {path} (attempt {attempt}/{attempts})")
                if attempt == attempts:
                    raise GatewayError("Payment gateway timed out") from e
            except httpx.HTTPError as e:
                logger.error(f"Gateway request failed: {e}")
                raise GatewayError("Payment gateway unreachable") from e

        raise GatewayError("Payment gateway unreachable")

    async def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        notes: Optional[dict[str, str]] = None,
    ) -> GatewayOrder:
        """
        Create a hosted payment order.

        Args:
            amount: Amount in minor units (paise)
            currency: ISO currency code
            receipt: Internal order number, used as the receipt key
            notes: Free-form metadata stored with the gateway order

        Returns:
            The created gateway order
        """
        if not self.configured:
            raise GatewayNotConfigured("Payment gateway credentials not configured")

        response = await self._post(
            "/orders",
            {
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes or {},
            },
        )

        if response.status_code >= 400:
            logger.error(f"Gateway order creation failed: {response.status_code} - {response.text}")
            raise GatewayError(f"Failed to create gateway order ({response.status_code})")

        try:
            data = response.json()
            return GatewayOrder(
                id=data["id"],
                amount=data.get("amount", amount),
                currency=data.get("currency", currency),
                receipt=data.get("receipt", receipt),
                status=data.get("status", "created"),
            )
        except (ValueError, KeyError) as e:
            raise GatewayError("Malformed gateway order response") from e

    def expected_signature(self, gateway_order_id: str, payment_id: str) -> str:
        """HMAC-SHA256 of '<order_id>|<payment_id>' with the key secret, hex encoded"""
        if not self._key_secret:
            raise GatewayNotConfigured("Payment gateway secret not configured")
        message = f"{gateway_order_id}|{payment_id}".encode()
        return hmac.new(self._key_secret.encode(), message, hashlib.sha256).hexdigest()

    def verify_payment_signature(
        self,
        gateway_order_id: str,
        payment_id: str,
        signature: str,
    ) -> bool:
        """Check the signature returned to the browser after payment"""
        expected = self.expected_signature(gateway_order_id, payment_id)
        return hmac.compare_digest(expected, signature)
