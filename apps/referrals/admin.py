"""Admin registration for the referral program."""

from __future__ import annotations

from django.contrib import admin

from .models import CommissionEntry, ReferralSettings, ReferralTracking, Withdrawal


@admin.register(ReferralSettings)
class ReferralSettingsAdmin(admin.ModelAdmin):
    list_display = ("__str__", "updated_at")


@admin.register(ReferralTracking)
class ReferralTrackingAdmin(admin.ModelAdmin):
    list_display = ("referrer", "referred_user", "item_type", "item_id", "status", "created_at")
    list_filter = ("status", "referral_type", "item_type")
    search_fields = ("referrer__email", "item_id")


@admin.register(CommissionEntry)
class CommissionEntryAdmin(admin.ModelAdmin):
    list_display = ("referrer", "booking", "booking_amount", "commission_amount", "status", "paid_at", "withdrawn_at")
    list_filter = ("status", "commission_type")
    search_fields = ("referrer__email", "booking__booking_code")
    readonly_fields = (
        "booking_amount",
        "service_fee_rate",
        "base_amount",
        "rate",
        "commission_amount",
        "paid_at",
        "withdrawn_at",
        "withdrawal",
    )


@admin.register(Withdrawal)
class WithdrawalAdmin(admin.ModelAdmin):
    list_display = ("referrer", "amount_requested", "amount_consumed", "created_at")
    search_fields = ("referrer__email",)
