"""User-side models for the travel marketplace.

Accounts are plain ``django.contrib.auth`` users. ``UserProfile`` holds the
contact details the booking wizard pre-fills, and ``HostVerification``
gates the referral program: only approved hosts get trackable links.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.validators import RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


PHONE_VALIDATOR = RegexValidator(
    regex=r"^\+?\d{7,15}$",
    message=_("Invalid phone number. Use the international format without spaces."),
)


def normalize_phone(phone: str) -> str:
    """Strip spaces and dashes so phones are stored uniformly."""
    return phone.replace(" ", "").replace("-", "")


class UserProfile(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=20, blank=True, validators=[PHONE_VALIDATOR])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("User profile")
        verbose_name_plural = _("User profiles")

    def __str__(self) -> str:
        return self.name or str(self.user)

    def save(self, *args, **kwargs):  # type: ignore
        if self.phone:
            self.phone = normalize_phone(self.phone)
        super().save(*args, **kwargs)


class HostVerification(models.Model):
    """Identity check a host passes before joining the referral program."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending review")
        APPROVED = "approved", _("Approved")
        REJECTED = "rejected", _("Rejected")

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="host_verification",
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    notes = models.TextField(blank=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Host verification")
        verbose_name_plural = _("Host verifications")

    def __str__(self) -> str:
        return f"{self.user} ({self.status})"

    @property
    def is_approved(self) -> bool:
        return self.status == self.Status.APPROVED

    def approve(self) -> None:
        self.status = self.Status.APPROVED
        self.reviewed_at = timezone.now()
        self.save(update_fields=["status", "reviewed_at", "updated_at"])

    def reject(self, notes: str = "") -> None:
        self.status = self.Status.REJECTED
        self.notes = notes
        self.reviewed_at = timezone.now()
        self.save(update_fields=["status", "notes", "reviewed_at", "updated_at"])
