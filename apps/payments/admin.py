"""Admin registration for payments."""

from __future__ import annotations

from django.contrib import admin, messages

from .models import Payment, PaymentEvent
from .services import confirm_cash_payment


class PaymentEventInline(admin.TabularInline):
    model = PaymentEvent
    extra = 0
    can_delete = False
    readonly_fields = ("status", "result_code", "applied", "outcome_after", "payload", "created_at")


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("reference", "booking", "method", "amount", "currency", "outcome", "created_at")
    list_filter = ("outcome", "method", "provider")
    search_fields = ("reference", "booking__booking_code", "phone")
    readonly_fields = ("reference", "outcome", "result_code", "result_description", "completed_at", "created_at", "updated_at")
    inlines = [PaymentEventInline]
    actions = ["confirm_cash"]

    @admin.action(description="Confirm cash received")
    def confirm_cash(self, request, queryset):
        confirmed = 0
        for payment in queryset.filter(method="cash", outcome=Payment.Outcome.PROCESSING):
            confirm_cash_payment(payment.reference, description=f"Confirmed by {request.user}")
            confirmed += 1
        self.message_user(request, f"{confirmed} cash payment(s) confirmed.", messages.SUCCESS)
