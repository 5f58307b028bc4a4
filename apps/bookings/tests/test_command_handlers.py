from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core import mail

from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    ConfirmBookingPaymentCommand,
    ConfirmBookingPaymentHandler,
    FailBookingPaymentCommand,
    FailBookingPaymentHandler,
    RetryBookingPaymentCommand,
    RetryBookingPaymentHandler,
    SubmitBookingCommand,
    SubmitBookingHandler,
)
from apps.bookings.domain.exceptions import BookingStateError, BookingValidationError, CheckoutFailed
from apps.bookings.domain.form_state import BookingFormState
from apps.bookings.domain.selection import PaymentDetails, PaymentMethod
from apps.bookings.models import Booking
from apps.listings.models import Listing
from apps.payments.models import Payment
from apps.payments.provider import PaymentProviderError


def make_listing(**overrides):
    host = get_user_model().objects.create_user(
        username=f"host{Listing.objects.count()}",
        email="host@example.com",
        password="pass",
    )
    values = dict(
        host=host,
        item_type="attraction",
        name="Crater Lake",
        price_adult=Decimal("1000.00"),
        price_child=Decimal("500.00"),
    )
    values.update(overrides)
    return Listing.objects.create(**values)


def guest_form(listing, method="mobile_money"):
    form = BookingFormState.open(listing.to_bookable_item())
    form.set_visit_date(date.today() + timedelta(days=7))
    form.set_party_size(2, 1)
    form.set_guest_identity("Amina", "amina@example.com", "+254700000001")
    form.set_payment_method(method, phone="+254700000001")
    form.go_to(form.sequencer.last)
    return form


class RecordingCheckout:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def __call__(self, booking, details):
        self.calls.append((booking.booking_code, details.method))
        if self.error is not None:
            raise self.error
        return Payment.objects.create(
            booking=booking,
            reference=f"ref_{len(self.calls)}_{booking.pk}",
            method=details.method.value,
            amount=booking.total_amount,
        )


@pytest.mark.django_db
def test_submit_creates_pending_booking_and_starts_checkout():
    listing = make_listing()
    checkout = RecordingCheckout()

    result = SubmitBookingHandler(checkout).handle(SubmitBookingCommand(form=guest_form(listing)))

    booking = Booking.objects.get()
    assert result.booking == booking
    assert booking.status == Booking.Status.PENDING
    assert booking.total_amount == Decimal("2500.00")
    assert booking.slots_booked == 3
    assert booking.is_guest_booking
    assert booking.guest_email == "amina@example.com"
    assert booking.host_id == listing.host_id
    assert booking.item_id == str(listing.pk)
    assert booking.payment_method == "mobile_money"
    assert result.payment.reference.startswith("ref_1_")
    assert checkout.calls == [(booking.booking_code, PaymentMethod.MOBILE_MONEY)]


@pytest.mark.django_db
def test_submit_rejects_incomplete_draft():
    listing = make_listing()
    form = BookingFormState.open(listing.to_bookable_item())
    checkout = RecordingCheckout()

    with pytest.raises(BookingValidationError):
        SubmitBookingHandler(checkout).handle(SubmitBookingCommand(form=form))

    assert not Booking.objects.exists()
    assert checkout.calls == []


@pytest.mark.django_db
def test_submit_refused_while_form_busy():
    form = guest_form(make_listing())

    with form.busy():
        with pytest.raises(BookingStateError):
            SubmitBookingHandler(RecordingCheckout()).handle(SubmitBookingCommand(form=form))

    assert not Booking.objects.exists()


@pytest.mark.django_db
def test_free_booking_is_paid_immediately(django_capture_on_commit_callbacks):
    listing = make_listing(entrance_type=Listing.EntranceType.FREE)
    checkout = RecordingCheckout()

    form = BookingFormState.open(listing.to_bookable_item())
    form.set_visit_date(date.today())
    form.set_guest_identity("Amina", "amina@example.com", "+254700000001")
    form.go_to(form.sequencer.last)

    with django_capture_on_commit_callbacks(execute=True):
        result = SubmitBookingHandler(checkout).handle(SubmitBookingCommand(form=form))

    assert result.payment is None
    assert result.booking.status == Booking.Status.PAID
    assert result.booking.payment_method == ""
    assert checkout.calls == []
    assert {message.to[0] for message in mail.outbox} == {"amina@example.com", "host@example.com"}


@pytest.mark.django_db
def test_provider_failure_leaves_retryable_booking():
    listing = make_listing()
    checkout = RecordingCheckout(error=PaymentProviderError("timeout"))

    with pytest.raises(CheckoutFailed) as excinfo:
        SubmitBookingHandler(checkout).handle(SubmitBookingCommand(form=guest_form(listing)))

    booking = Booking.objects.get()
    assert excinfo.value.booking.pk == booking.pk
    assert booking.status == Booking.Status.FAILED
    assert booking.can_retry_payment


@pytest.mark.django_db
def test_confirm_is_idempotent(django_capture_on_commit_callbacks):
    result = SubmitBookingHandler(RecordingCheckout()).handle(SubmitBookingCommand(form=guest_form(make_listing())))
    command = ConfirmBookingPaymentCommand(booking_id=result.booking.pk, reference=result.payment.reference)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        booking = ConfirmBookingPaymentHandler().handle(command)
    assert booking.status == Booking.Status.PAID
    assert booking.paid_at is not None
    assert len(callbacks) >= 1

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        ConfirmBookingPaymentHandler().handle(command)
    assert callbacks == []


@pytest.mark.django_db
def test_late_success_settles_failed_booking():
    result = SubmitBookingHandler(RecordingCheckout()).handle(SubmitBookingCommand(form=guest_form(make_listing())))
    booking_id = result.booking.pk

    FailBookingPaymentHandler().handle(FailBookingPaymentCommand(booking_id, "pin_error", "Wrong PIN"))
    assert Booking.objects.get(pk=booking_id).failure_reason == "Wrong PIN"

    booking = ConfirmBookingPaymentHandler().handle(ConfirmBookingPaymentCommand(booking_id))
    assert booking.status == Booking.Status.PAID
    assert booking.failure_reason == ""


@pytest.mark.django_db
def test_retry_payment_opens_new_attempt():
    listing = make_listing()
    with pytest.raises(CheckoutFailed):
        SubmitBookingHandler(RecordingCheckout(error=PaymentProviderError("down"))).handle(
            SubmitBookingCommand(form=guest_form(listing))
        )
    booking = Booking.objects.get()
    checkout = RecordingCheckout()

    result = RetryBookingPaymentHandler(checkout).handle(RetryBookingPaymentCommand(
        booking_id=booking.pk,
        payment=PaymentDetails(method=PaymentMethod.CASH),
    ))

    booking.refresh_from_db()
    assert booking.status == Booking.Status.PENDING
    assert booking.payment_method == "cash"
    assert result.payment.booking_id == booking.pk
    assert checkout.calls == [(booking.booking_code, PaymentMethod.CASH)]


@pytest.mark.django_db
def test_retry_requires_failed_booking_and_valid_details():
    result = SubmitBookingHandler(RecordingCheckout()).handle(SubmitBookingCommand(form=guest_form(make_listing())))
    handler = RetryBookingPaymentHandler(RecordingCheckout())

    with pytest.raises(BookingValidationError):
        handler.handle(RetryBookingPaymentCommand(
            booking_id=result.booking.pk,
            payment=PaymentDetails(method=PaymentMethod.MOBILE_MONEY),
        ))
    with pytest.raises(BookingStateError):
        handler.handle(RetryBookingPaymentCommand(
            booking_id=result.booking.pk,
            payment=PaymentDetails(method=PaymentMethod.MOBILE_MONEY, phone="+254700000001"),
        ))


@pytest.mark.django_db
def test_cancel_pending_booking_but_not_paid_one():
    handler = SubmitBookingHandler(RecordingCheckout())
    pending = handler.handle(SubmitBookingCommand(form=guest_form(make_listing()))).booking
    paid = handler.handle(SubmitBookingCommand(form=guest_form(Listing.objects.get()))).booking
    ConfirmBookingPaymentHandler().handle(ConfirmBookingPaymentCommand(paid.pk))

    cancelled = CancelBookingHandler().handle(CancelBookingCommand(pending.pk, "Plans changed"))
    assert cancelled.status == Booking.Status.CANCELLED
    assert cancelled.cancellation_reason == "Plans changed"
    assert cancelled.cancelled_at is not None

    with pytest.raises(BookingStateError):
        CancelBookingHandler().handle(CancelBookingCommand(paid.pk))
