"""Admin registration for properties and room types."""

from __future__ import annotations

from django.contrib import admin

from .models import Property, RoomType


class RoomTypeInline(admin.TabularInline):
    model = RoomType
    extra = 0
    fields = ("name", "total_rooms", "base_price", "weekend_price", "holiday_price", "is_active")


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ("name", "host_id", "property_type_id", "location_id", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name",)
    inlines = [RoomTypeInline]


@admin.register(RoomType)
class RoomTypeAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "property",
        "total_rooms",
        "base_price",
        "weekend_price",
        "holiday_price",
        "max_guests",
        "is_active",
    )
    list_filter = ("is_active",)
    search_fields = ("name", "property__name")
