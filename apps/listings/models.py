"""Listing models for bookable trips, events, hotels and places."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.text import slugify  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.bookings.domain.selection import (
    BookableItem,
    EntranceType,
    ItemType,
    OfferedActivity,
    OfferedFacility,
    to_decimal,
)


class Listing(models.Model):
    """Something a guest can book, owned by a host."""

    ITEM_TYPE_CHOICES = [(t.value, t.value.replace("_", " ").title()) for t in ItemType]

    class EntranceType(models.TextChoices):
        FREE = EntranceType.FREE.value, _("Free entrance")
        PAID = EntranceType.PAID.value, _("Paid entrance")

    host = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="listings",
    )
    item_type = models.CharField(max_length=32, choices=ITEM_TYPE_CHOICES)
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=255, blank=True)

    entrance_type = models.CharField(
        max_length=10,
        choices=EntranceType.choices,
        default=EntranceType.PAID,
    )
    price_adult = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    price_child = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    currency = models.CharField(max_length=3, default="KES")

    facilities = models.JSONField(
        default=list,
        blank=True,
        help_text=_('Per-day rentals: [{"name": "Campsite", "price": "1500", "capacity": 4}]'),
    )
    activities = models.JSONField(
        default=list,
        blank=True,
        help_text=_('Per-person activities: [{"name": "Kayaking", "price": "800"}]'),
    )

    fixed_date = models.DateField(
        null=True,
        blank=True,
        help_text=_("Trips and events run on one date; the guest does not pick it."),
    )
    skip_date_selection = models.BooleanField(default=False)
    skip_add_ons = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Listing")
        verbose_name_plural = _("Listings")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["item_type", "is_active"], name="listing_type_active_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.item_type})"

    def clean(self) -> None:
        for field in ("facilities", "activities"):
            entries = getattr(self, field) or []
            if not isinstance(entries, list):
                raise ValidationError({field: _("Expected a list of offerings.")})
            for entry in entries:
                if not isinstance(entry, dict) or not entry.get("name"):
                    raise ValidationError({field: _("Each offering needs a name.")})
                _validate_offering_price(field, entry)

    def save(self, *args, **kwargs):  # type: ignore
        if not self.slug:
            self.slug = slugify(self.name)[:255]
        self.clean()
        super().save(*args, **kwargs)

    def to_bookable_item(self) -> BookableItem:
        return BookableItem(
            item_id=str(self.pk),
            item_type=self.item_type,
            name=self.name,
            host_id=self.host_id,
            price_adult=to_decimal(self.price_adult),
            price_child=to_decimal(self.price_child),
            entrance_type=EntranceType(self.entrance_type),
            facilities=tuple(
                OfferedFacility(
                    name=entry["name"],
                    price=to_decimal(entry.get("price")),
                    capacity=entry.get("capacity"),
                )
                for entry in self.facilities or []
            ),
            activities=tuple(
                OfferedActivity(name=entry["name"], price=to_decimal(entry.get("price")))
                for entry in self.activities or []
            ),
            fixed_date=self.fixed_date,
            skip_date_selection=self.skip_date_selection,
            skip_add_ons=self.skip_add_ons,
            currency=self.currency,
        )


def _validate_offering_price(field: str, entry: dict) -> None:
    """Offered prices must fit the two-decimal totals they end up in."""
    try:
        price = to_decimal(entry.get("price"))
    except InvalidOperation:
        raise ValidationError({field: _("%(name)s has an invalid price.") % {"name": entry["name"]}})
    if not price.is_finite() or price < 0 or price.as_tuple().exponent < -2:
        raise ValidationError(
            {field: _("%(name)s must have a non-negative price with at most two decimals.") % {"name": entry["name"]}}
        )
