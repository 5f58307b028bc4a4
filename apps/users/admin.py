"""Admin registration for profiles and host verification."""

from __future__ import annotations

from django.contrib import admin

from .models import HostVerification, UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "name", "phone", "created_at")
    search_fields = ("user__email", "name", "phone")


@admin.register(HostVerification)
class HostVerificationAdmin(admin.ModelAdmin):
    list_display = ("user", "status", "reviewed_at", "created_at")
    list_filter = ("status",)
    search_fields = ("user__email",)
    actions = ["approve_selected"]

    @admin.action(description="Approve selected hosts")
    def approve_selected(self, request, queryset):
        for verification in queryset.exclude(status=HostVerification.Status.APPROVED):
            verification.approve()
