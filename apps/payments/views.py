"""API views for payment status and provider callbacks.

The webhook is the only writer of payment outcomes (apart from staff
confirming cash). It is authenticated by an HMAC-SHA256 signature of the
raw body instead of a user session.
"""

from __future__ import annotations

import json
import logging

from django.conf import settings  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from .models import Payment
from .provider import InvalidWebhookSignature, verify_webhook_signature
from .serializers import PaymentSerializer
from .services import UnknownPaymentReference, apply_provider_event, parse_webhook_payload

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "HTTP_X_PAYMENT_SIGNATURE"


class PaymentWebhookView(APIView):
    """Receives provider status events."""

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        body = request.body
        try:
            self._verify(body, request.META.get(SIGNATURE_HEADER, ""))
        except InvalidWebhookSignature as e:
            logger.warning(f"Rejected payment webhook: {e}")
            return Response({"detail": "Invalid signature."}, status=status.HTTP_403_FORBIDDEN)

        try:
            payload = json.loads(body or b"{}")
        except ValueError:
            return Response({"detail": "Malformed JSON."}, status=status.HTTP_400_BAD_REQUEST)
        if not isinstance(payload, dict):
            return Response({"detail": "Payload must be a JSON object."}, status=status.HTTP_400_BAD_REQUEST)

        event = parse_webhook_payload(payload)
        if not event.reference:
            return Response({"detail": "Missing payment reference."}, status=status.HTTP_400_BAD_REQUEST)

        try:
            payment = apply_provider_event(event)
        except UnknownPaymentReference:
            logger.warning(f"Webhook for unknown payment reference {event.reference}")
            return Response({"detail": "Unknown payment reference."}, status=status.HTTP_404_NOT_FOUND)

        return Response({"reference": payment.reference, "outcome": payment.outcome})

    @staticmethod
    def _verify(body: bytes, signature: str) -> None:
        secret = getattr(settings, "PAYMENT_WEBHOOK_SECRET", "")
        if not secret:
            if settings.DEBUG:
                return
            raise InvalidWebhookSignature("Webhook secret is not configured")
        if not verify_webhook_signature(body, signature, secret):
            raise InvalidWebhookSignature("Signature mismatch")


class PaymentStatusView(APIView):
    """Polling fallback for clients that cannot keep a push subscription open."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, reference: str):  # type: ignore
        payment = get_object_or_404(Payment.objects.select_related("booking"), reference=reference)
        user = request.user
        booking = payment.booking
        if booking.user_id is not None and not (
            user.is_authenticated and (user.id == booking.user_id or user.is_staff)
        ):
            return Response(status=status.HTTP_403_FORBIDDEN)
        return Response(PaymentSerializer(payment).data)
