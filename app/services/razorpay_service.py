"""
Razorpay payment gateway.

Flow:
  1. POST /payments/orders → backend creates a Razorpay order (manual capture)
  2. Backend returns {provider_order_id, approval_url} to the frontend
  3. Frontend opens Razorpay checkout — the buyer authorizes the payment
  4. Razorpay redirects to return_url (or cancel_url)
  5. Frontend POSTs /payments/orders/{provider_order_id}/capture
  6. Backend asks Razorpay to capture the authorized payment of that order
     and, only when Razorpay reports it captured, completes the enrollment

Orders are created with payment_capture=0, so money only moves in step 6 —
the server, not the browser, decides when a payment is settled.

Note: Razorpay amounts are in the currency's minor unit (paise for INR).
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from functools import lru_cache
from typing import Optional, Protocol
from urllib.parse import urlencode

import razorpay
import requests
from razorpay.errors import BadRequestError, GatewayError, ServerError

from app.config import settings

# Outcome reported by capture_order when the provider confirms settlement
CAPTURE_COMPLETED = "COMPLETED"

_PROVIDER_ERRORS = (BadRequestError, GatewayError, ServerError, requests.RequestException)


class PaymentProviderError(Exception):
    """The provider rejected the call or could not be reached."""


@dataclass(frozen=True)
class ProviderOrder:
    provider_order_id: str
    approval_url: str


@dataclass(frozen=True)
class ProviderCapture:
    status: str                         # CAPTURE_COMPLETED or the provider's own status
    provider_payment_id: Optional[str] = None


class PaymentGateway(Protocol):
    name: str

    def create_order(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        return_url: str,
        cancel_url: str,
        receipt: Optional[str] = None,
    ) -> ProviderOrder: ...

    def capture_order(self, provider_order_id: str) -> ProviderCapture: ...


def to_minor_units(amount: Decimal) -> int:
    """99.99 → 9999. Rounds half-up at the second decimal."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class RazorpayGateway:
    name = "razorpay"

    def __init__(self, key_id: str, key_secret: str, checkout_base_url: str):
        self.key_id = key_id
        self.checkout_base_url = checkout_base_url
        self.client = razorpay.Client(auth=(key_id, key_secret))

    def create_order(
        self,
        amount: Decimal,
        currency: str,
        description: str,
        return_url: str,
        cancel_url: str,
        receipt: Optional[str] = None,
    ) -> ProviderOrder:
        data = {
            "amount": to_minor_units(amount),
            "currency": currency,
            "payment_capture": 0,           # captured explicitly by capture_order
            "notes": {
                "description": description[:255],
                "return_url": return_url,
                "cancel_url": cancel_url,
            },
        }
        if receipt:
            data["receipt"] = receipt[:40]  # Razorpay limit

        try:
            order = self.client.order.create(data=data)
        except _PROVIDER_ERRORS as exc:
            raise PaymentProviderError(f"Razorpay order creation failed: {exc}") from exc

        query = urlencode({
            "order_id": order["id"],
            "key_id": self.key_id,
            "return_url": return_url,
            "cancel_url": cancel_url,
        })
        return ProviderOrder(
            provider_order_id=order["id"],
            approval_url=f"{self.checkout_base_url}?{query}",
        )

    def capture_order(self, provider_order_id: str) -> ProviderCapture:
        """
        Settles the order. An already-captured payment counts as completed;
        otherwise the first authorized payment is captured now. Anything else
        (no payment yet, failed payment) is reported with Razorpay's status.
        """
        try:
            payments = self.client.order.payments(provider_order_id).get("items", [])

            for payment in payments:
                if payment.get("status") == "captured":
                    return ProviderCapture(status=CAPTURE_COMPLETED, provider_payment_id=payment["id"])

            for payment in payments:
                if payment.get("status") == "authorized":
                    captured = self.client.payment.capture(
                        payment["id"], payment["amount"], {"currency": payment["currency"]}
                    )
                    if captured.get("status") == "captured":
                        return ProviderCapture(status=CAPTURE_COMPLETED, provider_payment_id=payment["id"])
                    return ProviderCapture(
                        status=str(captured.get("status", "unknown")).upper(),
                        provider_payment_id=payment["id"],
                    )
        except _PROVIDER_ERRORS as exc:
            raise PaymentProviderError(f"Razorpay capture failed: {exc}") from exc

        latest = payments[0].get("status", "unknown") if payments else "no_payment"
        return ProviderCapture(status=str(latest).upper())


@lru_cache()
def _default_gateway() -> RazorpayGateway:
    return RazorpayGateway(
        key_id=settings.razorpay_key_id,
        key_secret=settings.razorpay_key_secret,
        checkout_base_url=settings.checkout_base_url,
    )


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency. Tests override this with a fake gateway."""
    return _default_gateway()
