"""
Payment orchestration

``start_checkout`` opens a Payment attempt for a pending booking and asks
the provider to charge it. ``apply_provider_event`` feeds one provider
event through a PaymentStatusWatcher rebuilt from the stored outcome,
records the event, and settles the booking once the outcome is terminal.
"""

import logging
import uuid

import structlog
from django.db import transaction
from django.utils import timezone

from apps.bookings.domain.exceptions import BookingStateError
from apps.bookings.domain.selection import PaymentDetails, PaymentMethod
from apps.bookings.models import Booking
from apps.payments.models import Payment, PaymentEvent
from apps.payments.provider import CheckoutRequest, PaymentProviderError, get_provider
from apps.payments.watcher import (
    PaymentOutcome,
    PaymentStatusWatcher,
    ProviderEvent,
    RESULT_CODE_SUCCESS,
    normalize_result_code,
    payment_channel,
)

logger = logging.getLogger(__name__)
audit_log = structlog.get_logger("payments")


class UnknownPaymentReference(PaymentProviderError):
    """Provider event for a reference we never issued."""


def start_checkout(booking: Booking, details: PaymentDetails, provider=None) -> Payment:
    """Create a Payment attempt and initiate it with the provider"""
    if booking.status != Booking.Status.PENDING:
        raise BookingStateError(f"Booking {booking.booking_code} is not awaiting payment")

    method = details.method or PaymentMethod.MOBILE_MONEY
    if method == PaymentMethod.CASH:
        payment = Payment.objects.create(
            booking=booking,
            reference=f"cash_{uuid.uuid4().hex[:16]}",
            method=method.value,
            provider="cash",
            amount=booking.total_amount,
            currency=booking.currency,
            phone=details.phone,
        )
        logger.info(f"Cash payment {payment.reference} awaiting confirmation for booking {booking.booking_code}")
        return payment

    provider = provider or get_provider()
    response = provider.initiate(CheckoutRequest(
        booking_code=booking.booking_code,
        amount=booking.total_amount,
        currency=booking.currency,
        method=method.value,
        phone=details.phone or booking.guest_phone,
        email=booking.guest_email,
        description=f"Booking {booking.booking_code}: {booking.item_name}",
    ))

    payment = Payment.objects.create(
        booking=booking,
        reference=response.reference,
        method=method.value,
        provider="emulated" if getattr(provider, "is_emulated", False) else "gateway",
        amount=booking.total_amount,
        currency=booking.currency,
        phone=details.phone,
        checkout_url=response.checkout_url,
        metadata={"initial_status": response.status},
    )
    audit_log.info(
        "checkout_started",
        booking=booking.booking_code,
        reference=payment.reference,
        method=payment.method,
        amount=str(payment.amount),
    )
    return payment


def _settle_booking(payment: Payment, outcome: PaymentOutcome) -> None:
    from apps.bookings.application.command_handlers import (
        ConfirmBookingPaymentCommand,
        ConfirmBookingPaymentHandler,
        FailBookingPaymentCommand,
        FailBookingPaymentHandler,
    )

    booking = payment.booking
    try:
        if outcome == PaymentOutcome.SUCCESS:
            ConfirmBookingPaymentHandler().handle(ConfirmBookingPaymentCommand(
                booking_id=booking.pk,
                reference=payment.reference,
            ))
            return

        newer_attempt = (
            booking.payments.filter(outcome=Payment.Outcome.PROCESSING)
            .exclude(pk=payment.pk)
            .exists()
        )
        if newer_attempt:
            logger.info(f"Payment {payment.reference} failed but another attempt is still processing")
            return
        FailBookingPaymentHandler().handle(FailBookingPaymentCommand(
            booking_id=booking.pk,
            outcome=outcome.value,
            message=outcome.message,
        ))
    except BookingStateError as e:
        logger.error(f"Could not settle booking {booking.booking_code} from {payment.reference}: {e}")
        if outcome == PaymentOutcome.SUCCESS:
            payment.metadata = {**payment.metadata, "needs_refund": True}
            payment.save(update_fields=["metadata", "updated_at"])


def apply_provider_event(event: ProviderEvent) -> Payment:
    """
    Apply one provider event to its Payment

    Events after a terminal outcome are recorded but change nothing. Channel
    subscribers are notified only after the transaction commits.
    """
    with transaction.atomic():
        try:
            payment = (
                Payment.objects.select_for_update()
                .select_related("booking")
                .get(reference=event.reference)
            )
        except Payment.DoesNotExist:
            raise UnknownPaymentReference(f"Unknown payment reference {event.reference}")

        terminal_outcomes = []
        watcher = PaymentStatusWatcher(
            payment.reference,
            initial=payment.status,
            on_terminal=terminal_outcomes.append,
        )
        applied = watcher.handle(event)

        PaymentEvent.objects.create(
            payment=payment,
            status=event.status[:32],
            result_code=normalize_result_code(event.result_code) or "",
            payload=event.payload,
            applied=applied,
            outcome_after=watcher.status.value,
        )

        if applied:
            payment.outcome = watcher.status.value
            payment.result_code = normalize_result_code(event.result_code) or ""
            payment.result_description = event.description[:255]
            payment.completed_at = timezone.now()
            payment.save(update_fields=[
                "outcome", "result_code", "result_description", "completed_at", "updated_at",
            ])
            audit_log.info(
                "payment_settled",
                reference=payment.reference,
                booking=payment.booking.booking_code,
                outcome=payment.outcome,
                result_code=payment.result_code,
            )
            for outcome in terminal_outcomes:
                _settle_booking(payment, outcome)

        transaction.on_commit(lambda: payment_channel.publish(event))

    return payment


def confirm_cash_payment(reference: str, description: str = "Cash received") -> Payment:
    """Staff confirmation for a cash attempt"""
    return apply_provider_event(ProviderEvent(
        reference=reference,
        status="success",
        result_code=RESULT_CODE_SUCCESS,
        description=description,
    ))


def parse_webhook_payload(payload: dict) -> ProviderEvent:
    """
    Normalize a webhook body into a ProviderEvent

    Accepts a flat ``{"reference", "status", "result_code"}`` body and the
    STK push callback shape (``Body.stkCallback``).
    """
    body = payload.get("Body")
    callback = body.get("stkCallback") if isinstance(body, dict) else None
    if isinstance(callback, dict):
        return ProviderEvent(
            reference=str(callback.get("CheckoutRequestID", "")),
            status="",
            result_code=callback.get("ResultCode"),
            description=str(callback.get("ResultDesc", "")),
            payload=payload,
        )

    reference = payload.get("reference") or payload.get("checkout_request_id") or ""
    return ProviderEvent(
        reference=str(reference),
        status=str(payload.get("status", "")),
        result_code=payload.get("result_code"),
        description=str(payload.get("description", "")),
        payload=payload,
    )


def latest_payment(booking: Booking):
    return booking.payments.order_by("-created_at", "-id").first()
