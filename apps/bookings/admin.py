"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "item_name",
        "item_type",
        "user",
        "guest_email",
        "status",
        "total_amount",
        "visit_date",
        "created_at",
    )
    list_filter = ("status", "item_type", "is_guest_booking", "payment_method")
    search_fields = ("booking_code", "item_name", "guest_email", "user__email")
    readonly_fields = (
        "booking_code",
        "total_amount",
        "booking_details",
        "paid_at",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
