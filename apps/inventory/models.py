"""Inventory models: properties and their room types."""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PropertyQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)


class Property(models.Model):
    """Lodging property as seen by the booking engine.

    Property management lives elsewhere; the engine only needs the host,
    the classification used by coupon applicability and the active flag.
    """

    host_id = models.PositiveBigIntegerField(db_index=True)
    name = models.CharField(max_length=255)
    property_type_id = models.PositiveIntegerField(null=True, blank=True)
    location_id = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PropertyQuerySet.as_manager()

    class Meta:
        verbose_name = _("Property")
        verbose_name_plural = _("Properties")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class RoomTypeQuerySet(models.QuerySet):
    def bookable(self):
        return self.filter(is_active=True, property__is_active=True)


class RoomType(models.Model):
    """A class of identical rooms inside a property."""

    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name="room_types",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    total_rooms = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    base_price = models.DecimalField(max_digits=14, decimal_places=2)
    weekend_price = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    holiday_price = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    weekly_discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text=_("Discount applied to stays of at least 7 nights."),
    )
    monthly_discount_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0"),
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text=_("Discount applied to stays of at least 28 nights; replaces the weekly discount."),
    )
    max_adults = models.PositiveSmallIntegerField(default=2)
    max_children = models.PositiveSmallIntegerField(default=0)
    max_guests = models.PositiveSmallIntegerField(default=2)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = RoomTypeQuerySet.as_manager()

    class Meta:
        verbose_name = _("Room type")
        verbose_name_plural = _("Room types")
        ordering = ["property_id", "name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_rooms__gte=1),
                name="room_type_total_rooms_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(max_guests__gte=models.F("max_adults")),
                name="room_type_max_guests_covers_adults",
            ),
            models.CheckConstraint(
                condition=models.Q(weekly_discount_percent__gte=0, weekly_discount_percent__lte=100),
                name="room_type_weekly_discount_range",
            ),
            models.CheckConstraint(
                condition=models.Q(monthly_discount_percent__gte=0, monthly_discount_percent__lte=100),
                name="room_type_monthly_discount_range",
            ),
        ]
        indexes = [
            models.Index(fields=["property", "is_active"], name="room_type_property_active_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.property_id})"

    def clean(self) -> None:
        if self.total_rooms is not None and self.total_rooms < 1:
            raise ValidationError({"total_rooms": _("A room type needs at least one room.")})
        if self.max_guests < self.max_adults:
            raise ValidationError({"max_guests": _("Max guests cannot be lower than max adults.")})

    def is_bookable(self) -> bool:
        return self.is_active and self.property.is_active

    def rates(self):
        """Rate card consumed by the pricing calculator."""

        from apps.pricing.domain.calculator import RoomRates  # local import to avoid circular

        return RoomRates(
            total_rooms=self.total_rooms,
            base_price=self.base_price,
            weekend_price=self.weekend_price,
            holiday_price=self.holiday_price,
            weekly_discount_percent=self.weekly_discount_percent,
            monthly_discount_percent=self.monthly_discount_percent,
        )
