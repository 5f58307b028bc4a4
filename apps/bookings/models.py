"""Booking records for the travel marketplace."""

from __future__ import annotations

import secrets
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.base import Aggregate
from apps.bookings.domain.events import (
    BookingCancelled,
    BookingPaid,
    BookingPaymentFailed,
    BookingSubmitted,
)
from apps.bookings.domain.exceptions import BookingStateError
from apps.bookings.domain.selection import ItemType, PaymentMethod


class Booking(Aggregate, models.Model):
    """
    Submitted booking (immutable apart from status transitions).

    Cancellation is a status; records are never deleted.
    """

    class Status(models.TextChoices):
        PENDING = "pending", _("Awaiting payment")
        PAID = "paid", _("Paid")
        FAILED = "failed", _("Payment failed")
        CANCELLED = "cancelled", _("Cancelled")

    ITEM_TYPE_CHOICES = [(t.value, t.value.replace("_", " ").title()) for t in ItemType]
    PAYMENT_METHOD_CHOICES = [(m.value, m.value.replace("_", " ").title()) for m in PaymentMethod]

    ALLOWED_TRANSITIONS = {
        Status.PENDING: {Status.PAID, Status.FAILED, Status.CANCELLED},
        Status.FAILED: {Status.PENDING, Status.CANCELLED},
        Status.PAID: set(),
        Status.CANCELLED: set(),
    }

    booking_code = models.CharField(max_length=12, unique=True, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    host = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="hosted_bookings",
    )
    item_id = models.CharField(max_length=64)
    item_type = models.CharField(max_length=32, choices=ITEM_TYPE_CHOICES)
    item_name = models.CharField(max_length=255, blank=True)
    visit_date = models.DateField(null=True, blank=True)
    slots_booked = models.PositiveIntegerField(default=1)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="KES")
    booking_details = models.JSONField(default=dict, blank=True)

    is_guest_booking = models.BooleanField(default=False)
    guest_name = models.CharField(max_length=255, blank=True)
    guest_email = models.EmailField(blank=True)
    guest_phone = models.CharField(max_length=32, blank=True)

    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    failure_reason = models.CharField(max_length=255, blank=True)
    referral_tracking = models.ForeignKey(
        "referrals.ReferralTracking",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )

    paid_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name="booking_total_not_negative",
            ),
        ]
        indexes = [
            models.Index(fields=["item_type", "item_id"], name="booking_item_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_code} ({self.status})"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.booking_code:
            self.booking_code = self.generate_booking_code()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_booking_code() -> str:
        return secrets.token_hex(4).upper()

    @classmethod
    def from_submission(cls, submission, referral_tracking_id=None) -> "Booking":
        contact = submission.contact
        return cls(
            user_id=submission.user_id,
            host_id=submission.host_id,
            item_id=submission.item_id,
            item_type=submission.item_type,
            item_name=submission.item_name,
            visit_date=submission.visit_date,
            slots_booked=submission.slots_booked,
            total_amount=submission.total,
            currency=submission.currency,
            booking_details=submission.details(),
            is_guest_booking=submission.is_guest_booking,
            guest_name=contact.name,
            guest_email=contact.email,
            guest_phone=contact.phone,
            payment_method=submission.payment.method.value if submission.payment.method else "",
            referral_tracking_id=referral_tracking_id,
        )

    # ------------------------------------------------------------------
    # Status transitions (callers save and collect events)
    # ------------------------------------------------------------------
    def _transition(self, target: str) -> str:
        allowed = self.ALLOWED_TRANSITIONS[self.Status(self.status)]
        if target not in allowed:
            raise BookingStateError(f"Cannot move booking {self.booking_code} from {self.status} to {target}")
        old_status, self.status = self.status, target
        return old_status

    def record_submission(self) -> None:
        self.add_event(BookingSubmitted(
            aggregate_id=self.pk,
            booking_id=self.pk,
            user_id=self.user_id,
            total=self.total_amount,
            is_paid=self.total_amount > 0,
        ))

    def mark_paid(self) -> None:
        self._transition(self.Status.PAID)
        self.paid_at = timezone.now()
        self.failure_reason = ""
        self.add_event(BookingPaid(
            aggregate_id=self.pk,
            booking_id=self.pk,
            amount=Decimal(self.total_amount),
            currency=self.currency,
            item_type=self.item_type,
            user_id=self.user_id,
            referral_tracking_id=self.referral_tracking_id,
        ))

    def mark_failed(self, outcome: str, message: str) -> None:
        self._transition(self.Status.FAILED)
        self.failure_reason = message[:255]
        self.add_event(BookingPaymentFailed(
            aggregate_id=self.pk,
            booking_id=self.pk,
            outcome=outcome,
            message=message,
            user_id=self.user_id,
        ))

    def reopen_for_payment(self) -> None:
        self._transition(self.Status.PENDING)
        self.failure_reason = ""

    def cancel(self, reason: str = "") -> None:
        old_status = self._transition(self.Status.CANCELLED)
        self.cancelled_at = timezone.now()
        self.cancellation_reason = reason[:255]
        self.add_event(BookingCancelled(
            aggregate_id=self.pk,
            booking_id=self.pk,
            reason=reason,
            old_status=old_status,
            user_id=self.user_id,
        ))

    @property
    def is_paid(self) -> bool:
        return self.status == self.Status.PAID

    @property
    def can_retry_payment(self) -> bool:
        return self.status == self.Status.FAILED and self.total_amount > 0
