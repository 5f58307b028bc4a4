"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- SubmitBookingCommand: Turn a validated wizard draft into a booking record
- ConfirmBookingPaymentCommand: Provider confirmed payment (pending -> paid)
- FailBookingPaymentCommand: Provider reported a terminal failure (pending -> failed)
- RetryBookingPaymentCommand: Start a new checkout for a failed booking
- CancelBookingCommand: Cancel a pending or failed booking
"""

from dataclasses import dataclass
from typing import Callable, Optional
import logging

from shared.application.uow import DjangoUnitOfWork
from apps.bookings.domain.exceptions import BookingStateError, BookingValidationError, CheckoutFailed
from apps.bookings.domain.form_state import BookingFormState
from apps.bookings.domain.selection import PaymentDetails
from apps.bookings.domain.steps import validate_payment_details
from apps.bookings.models import Booking

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class SubmitBookingCommand:
    form: BookingFormState
    referral_tracking_id: Optional[int] = None


@dataclass
class ConfirmBookingPaymentCommand:
    booking_id: int
    reference: str = ''


@dataclass
class FailBookingPaymentCommand:
    booking_id: int
    outcome: str
    message: str


@dataclass
class RetryBookingPaymentCommand:
    booking_id: int
    payment: PaymentDetails


@dataclass
class CancelBookingCommand:
    booking_id: int
    reason: str = ''


@dataclass
class SubmitResult:
    booking: Booking
    payment: Optional[object] = None


def _default_checkout():
    from apps.payments.services import start_checkout

    return start_checkout


# ===== Command Handlers =====

class SubmitBookingHandler:
    """
    Handler for SubmitBooking command

    1. Re-validate the draft (REVIEW gate) while the form is marked busy
    2. Create the booking record; zero-total bookings are paid immediately
    3. Commit, then start the provider checkout for paid bookings

    A provider failure leaves the record in ``failed`` so the guest can
    retry (CheckoutFailed carries it); the record is never rolled back.
    """

    def __init__(self, checkout: Optional[Callable] = None):
        self._checkout = checkout

    @property
    def checkout(self) -> Callable:
        if self._checkout is None:
            self._checkout = _default_checkout()
        return self._checkout

    def handle(self, command: SubmitBookingCommand) -> SubmitResult:
        form = command.form
        if form.is_busy:
            raise BookingStateError("A submission for this booking is already in progress")

        with form.busy():
            submission = form.to_submission()

            with DjangoUnitOfWork() as uow:
                booking = Booking.from_submission(submission, command.referral_tracking_id)
                booking.save()
                booking.record_submission()
                if not submission.is_paid:
                    booking.mark_paid()
                    booking.save(update_fields=["status", "paid_at", "failure_reason", "updated_at"])
                uow.collect_events(booking)

            logger.info(
                f"Booking {booking.booking_code} submitted for {submission.item_type} "
                f"{submission.item_id}, total {submission.total} {submission.currency}"
            )

            if not submission.is_paid:
                return SubmitResult(booking=booking)

            payment = self._start_checkout(booking, submission.payment)
            return SubmitResult(booking=booking, payment=payment)

    def _start_checkout(self, booking: Booking, details: PaymentDetails):
        from apps.payments.provider import PaymentProviderError

        try:
            return self.checkout(booking, details)
        except PaymentProviderError as e:
            logger.error(f"Checkout for booking {booking.booking_code} failed: {e}")
            FailBookingPaymentHandler().handle(FailBookingPaymentCommand(
                booking_id=booking.pk,
                outcome="provider_unavailable",
                message="We could not reach the payment provider. Please try again.",
            ))
            booking.refresh_from_db()
            raise CheckoutFailed(booking, str(e)) from e


class ConfirmBookingPaymentHandler:
    """Handler for confirming a booking after successful payment"""

    def handle(self, command: ConfirmBookingPaymentCommand) -> Booking:
        logger.info(f"Confirming booking {command.booking_id} with payment {command.reference}")

        with DjangoUnitOfWork() as uow:
            booking = Booking.objects.select_for_update().get(pk=command.booking_id)
            if booking.status == Booking.Status.PAID:
                logger.info(f"Booking {booking.booking_code} already paid")
                return booking

            if booking.status == Booking.Status.FAILED:
                # A late success for an earlier attempt still settles the booking
                booking.reopen_for_payment()
            booking.mark_paid()
            booking.save(update_fields=["status", "paid_at", "failure_reason", "updated_at"])
            uow.collect_events(booking)

        logger.info(f"Booking {booking.booking_code} paid")
        return booking


class FailBookingPaymentHandler:
    """Handler for terminal payment failures; the booking stays retryable"""

    def handle(self, command: FailBookingPaymentCommand) -> Booking:
        with DjangoUnitOfWork() as uow:
            booking = Booking.objects.select_for_update().get(pk=command.booking_id)
            if booking.status == Booking.Status.FAILED:
                return booking

            booking.mark_failed(command.outcome, command.message)
            booking.save(update_fields=["status", "failure_reason", "updated_at"])
            uow.collect_events(booking)

        logger.warning(f"Booking {booking.booking_code} payment failed: {command.outcome}")
        return booking


class RetryBookingPaymentHandler:
    def __init__(self, checkout: Optional[Callable] = None):
        self._checkout = checkout

    def handle(self, command: RetryBookingPaymentCommand) -> SubmitResult:
        result = validate_payment_details(command.payment)
        if not result.ok:
            raise BookingValidationError(result.errors)

        with DjangoUnitOfWork():
            booking = Booking.objects.select_for_update().get(pk=command.booking_id)
            if not booking.can_retry_payment:
                raise BookingStateError(f"Booking {booking.booking_code} is not awaiting a payment retry")
            booking.reopen_for_payment()
            booking.payment_method = command.payment.method.value
            booking.save(update_fields=["status", "failure_reason", "payment_method", "updated_at"])

        submit = SubmitBookingHandler(checkout=self._checkout)
        payment = submit._start_checkout(booking, command.payment)
        logger.info(f"Payment retry started for booking {booking.booking_code}")
        return SubmitResult(booking=booking, payment=payment)


class CancelBookingHandler:
    def handle(self, command: CancelBookingCommand) -> Booking:
        logger.info(f"Cancelling booking {command.booking_id}, reason: {command.reason}")

        with DjangoUnitOfWork() as uow:
            booking = Booking.objects.select_for_update().get(pk=command.booking_id)
            booking.cancel(command.reason)
            booking.save(update_fields=["status", "cancelled_at", "cancellation_reason", "updated_at"])
            uow.collect_events(booking)

        return booking
