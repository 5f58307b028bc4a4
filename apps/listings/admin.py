"""Admin registration for listings."""

from __future__ import annotations

from django.contrib import admin

from .models import Listing


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):
    list_display = ("name", "item_type", "host", "entrance_type", "price_adult", "price_child", "is_active")
    list_filter = ("item_type", "entrance_type", "is_active")
    search_fields = ("name", "location", "host__email")
    prepopulated_fields = {"slug": ("name",)}
