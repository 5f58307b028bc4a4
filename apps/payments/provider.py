"""
Payment provider client

Starts a checkout (mobile money STK push or hosted card page) and returns
the provider-assigned reference synchronously. Status updates arrive later
through the webhook. Without an API key, or in DEBUG, the provider is
emulated so the booking flow can be exercised end to end.
"""

import hashlib
import hmac
import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class PaymentProviderError(Exception):
    """Provider unreachable or checkout rejected."""


class InvalidWebhookSignature(PaymentProviderError):
    """Webhook body does not match its signature."""


@dataclass(frozen=True)
class CheckoutRequest:
    booking_code: str
    amount: Decimal
    currency: str
    method: str
    phone: str = ''
    email: str = ''
    description: str = ''


@dataclass(frozen=True)
class CheckoutResponse:
    reference: str
    status: str = 'pending'
    checkout_url: str = ''
    raw: dict = field(default_factory=dict, compare=False)


def generate_signature(body: bytes, secret: str) -> str:
    """HMAC-SHA256 of the raw request body, hex encoded"""
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_webhook_signature(body: bytes, signature: str, secret: str) -> bool:
    if not signature:
        return False
    expected = generate_signature(body, secret)
    return hmac.compare_digest(expected, signature.strip())


class PaymentProviderClient:
    def __init__(self, api_url: str = None, api_key: str = None, timeout: float = None):
        self.api_url = (api_url if api_url is not None else getattr(settings, "PAYMENT_PROVIDER_API_URL", "")).rstrip("/")
        self.api_key = api_key if api_key is not None else getattr(settings, "PAYMENT_PROVIDER_API_KEY", "")
        self.timeout = timeout or getattr(settings, "PAYMENT_PROVIDER_TIMEOUT", 30)

    @property
    def is_emulated(self) -> bool:
        return settings.DEBUG or not self.api_key

    def initiate(self, request: CheckoutRequest) -> CheckoutResponse:
        logger.info(
            f"Initiating {request.method} checkout for booking {request.booking_code}, "
            f"amount {request.amount} {request.currency}"
        )

        if self.is_emulated:
            reference = f"emu_{uuid.uuid4().hex[:16]}"
            logger.warning(f"Payment provider emulated (DEBUG or no API key): {reference}")
            return CheckoutResponse(
                reference=reference,
                checkout_url=f"{getattr(settings, 'SITE_URL', '')}/payments/emulated/{reference}"
                if request.method == "card" else "",
            )

        payload = {
            "order_id": request.booking_code,
            "amount": str(request.amount),
            "currency": request.currency,
            "method": request.method,
            "phone": request.phone,
            "email": request.email,
            "description": request.description or f"Booking {request.booking_code}",
            "callback_url": f"{getattr(settings, 'SITE_URL', '')}/api/v1/payments/webhook/",
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        try:
            response = requests.post(
                f"{self.api_url}/checkouts",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error while contacting payment provider: {e}")
            raise PaymentProviderError(f"Payment provider unavailable: {e}") from e
        except ValueError as e:
            raise PaymentProviderError("Payment provider returned invalid JSON") from e

        reference = result.get("reference") or result.get("checkout_request_id")
        if not reference:
            error_msg = (result.get("error") or {}).get("message", "Unknown error")
            logger.error(f"Payment provider rejected checkout: {error_msg}")
            raise PaymentProviderError(f"Checkout rejected: {error_msg}")

        return CheckoutResponse(
            reference=reference,
            status=result.get("status", "pending"),
            checkout_url=result.get("checkout_url", ""),
            raw=result,
        )


def get_provider() -> PaymentProviderClient:
    return PaymentProviderClient()
