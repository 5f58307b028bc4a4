"""Payment attempts and the provider events received for them."""

from __future__ import annotations

from decimal import Decimal

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.payments.watcher import PaymentOutcome


class Payment(models.Model):
    """One checkout attempt for a booking (a retry creates a new row)."""

    class Outcome(models.TextChoices):
        PROCESSING = PaymentOutcome.PROCESSING.value, _("Processing")
        SUCCESS = PaymentOutcome.SUCCESS.value, _("Success")
        CANCELLED_BY_USER = PaymentOutcome.CANCELLED_BY_USER.value, _("Cancelled by payer")
        PIN_ERROR = PaymentOutcome.PIN_ERROR.value, _("Wrong PIN")
        GENERIC_FAILURE = PaymentOutcome.GENERIC_FAILURE.value, _("Failed")

    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="payments",
    )
    reference = models.CharField(max_length=100, unique=True)
    method = models.CharField(max_length=20)
    provider = models.CharField(max_length=50, blank=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default="KES")
    phone = models.CharField(max_length=32, blank=True)
    checkout_url = models.URLField(blank=True)
    outcome = models.CharField(max_length=20, choices=Outcome.choices, default=Outcome.PROCESSING)
    result_code = models.CharField(max_length=20, blank=True)
    result_description = models.CharField(max_length=255, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Payment")
        verbose_name_plural = _("Payments")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Payment {self.reference} ({self.outcome})"

    @property
    def status(self) -> PaymentOutcome:
        return PaymentOutcome(self.outcome)

    @property
    def message(self) -> str:
        return self.status.message


class PaymentEvent(models.Model):
    """Every provider event received, including the ones the watcher ignored."""

    payment = models.ForeignKey(
        Payment,
        on_delete=models.CASCADE,
        related_name="provider_events",
    )
    status = models.CharField(max_length=32, blank=True)
    result_code = models.CharField(max_length=20, blank=True)
    payload = models.JSONField(default=dict, blank=True)
    applied = models.BooleanField(default=False)
    outcome_after = models.CharField(max_length=20, choices=Payment.Outcome.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Payment event")
        verbose_name_plural = _("Payment events")
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"{self.status or self.result_code} for payment {self.payment_id}"
