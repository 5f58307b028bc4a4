"""Referral tracking and commission ledger models."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.bookings.domain.selection import ItemType

RATE_VALIDATORS = [MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))]
RATED_ITEM_TYPES = tuple(t.value for t in ItemType)


def _rate_field(help_text: str):
    return models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=RATE_VALIDATORS,
        help_text=help_text,
    )


class ReferralSettings(models.Model):
    """
    Per-category service fee and commission rates (percent).

    A single row is used; an empty rate falls back to the configured default.
    """

    trip_service_fee = _rate_field(_("Platform service fee on trips"))
    trip_commission_rate = _rate_field(_("Referrer share of the trip service fee"))
    event_service_fee = _rate_field(_("Platform service fee on events"))
    event_commission_rate = _rate_field(_("Referrer share of the event service fee"))
    hotel_service_fee = _rate_field(_("Platform service fee on hotels"))
    hotel_commission_rate = _rate_field(_("Referrer share of the hotel service fee"))
    attraction_service_fee = _rate_field(_("Platform service fee on attractions"))
    attraction_commission_rate = _rate_field(_("Referrer share of the attraction service fee"))
    adventure_place_service_fee = _rate_field(_("Platform service fee on adventure places"))
    adventure_place_commission_rate = _rate_field(_("Referrer share of the adventure place service fee"))
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Referral settings")
        verbose_name_plural = _("Referral settings")

    def __str__(self) -> str:
        return "Referral settings"

    def rates_for(self, item_type: str):
        """(service_fee_rate, commission_rate) as stored; either may be None"""
        if item_type not in RATED_ITEM_TYPES:
            return None, None
        return (
            getattr(self, f"{item_type}_service_fee"),
            getattr(self, f"{item_type}_commission_rate"),
        )


class ReferralTracking(models.Model):
    """One qualifying click on a referral link."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        CONVERTED = "converted", _("Converted")

    class ReferralType(models.TextChoices):
        BOOKING = "booking", _("Booking")
        HOST = "host", _("Host sign-up")

    referrer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="referral_clicks",
    )
    referred_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="referred_by",
    )
    referral_type = models.CharField(max_length=10, choices=ReferralType.choices, default=ReferralType.BOOKING)
    item_id = models.CharField(max_length=64, blank=True)
    item_type = models.CharField(max_length=32, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    converted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Referral click")
        verbose_name_plural = _("Referral clicks")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["referrer", "status"], name="tracking_referrer_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Referral by {self.referrer_id} ({self.status})"

    @property
    def is_converted(self) -> bool:
        return self.status == self.Status.CONVERTED


class Withdrawal(models.Model):
    """A payout request that consumed a set of commission entries."""

    referrer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="referral_withdrawals",
    )
    amount_requested = models.DecimalField(max_digits=16, decimal_places=4)
    amount_consumed = models.DecimalField(max_digits=16, decimal_places=4)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Commission withdrawal")
        verbose_name_plural = _("Commission withdrawals")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Withdrawal {self.amount_consumed} by {self.referrer_id}"


class CommissionEntry(models.Model):
    """
    Commission credited for one converted referral.

    ``commission_amount = base_amount * rate / 100`` where ``base_amount`` is
    the service fee taken on the booking. Amounts are fixed at creation.
    """

    class CommissionType(models.TextChoices):
        HOST = "host", _("Host referral")
        BOOKING = "booking", _("Booking referral")

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        PAID = "paid", _("Paid")

    referrer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="referral_commissions",
    )
    referred_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    booking = models.ForeignKey(
        "bookings.Booking",
        on_delete=models.PROTECT,
        related_name="referral_commissions",
    )
    tracking = models.OneToOneField(
        ReferralTracking,
        on_delete=models.PROTECT,
        related_name="commission",
    )
    commission_type = models.CharField(
        max_length=10,
        choices=CommissionType.choices,
        default=CommissionType.BOOKING,
    )
    booking_amount = models.DecimalField(max_digits=14, decimal_places=2)
    service_fee_rate = models.DecimalField(max_digits=5, decimal_places=2)
    base_amount = models.DecimalField(max_digits=16, decimal_places=4)
    rate = models.DecimalField(max_digits=5, decimal_places=2)
    commission_amount = models.DecimalField(max_digits=16, decimal_places=4)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    paid_at = models.DateTimeField(null=True, blank=True)
    withdrawn_at = models.DateTimeField(null=True, blank=True)
    withdrawal = models.ForeignKey(
        Withdrawal,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="entries",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Referral commission")
        verbose_name_plural = _("Referral commissions")
        ordering = ["paid_at", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(commission_amount__gte=0),
                name="commission_amount_not_negative",
            ),
        ]
        indexes = [
            models.Index(fields=["referrer", "status", "withdrawn_at"], name="commission_balance_idx"),
        ]

    def __str__(self) -> str:
        return f"Commission {self.commission_amount} for booking {self.booking_id}"

    @property
    def is_withdrawable(self) -> bool:
        return self.status == self.Status.PAID and self.withdrawn_at is None
