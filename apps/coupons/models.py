"""Coupon models."""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.coupons.domain.rules import CouponTerms, WEEKDAY_ABBREVIATIONS


class Coupon(models.Model):
    """Discount code with usage limits and applicability scope."""

    class DiscountType(models.TextChoices):
        PERCENTAGE = "percentage", _("Percentage")
        FIXED_AMOUNT = "fixed_amount", _("Fixed amount")
        FREE_NIGHT = "free_night", _("Free nights")

    class ApplicableTo(models.TextChoices):
        ALL = "all", _("All properties")
        PROPERTY = "property", _("Specific properties")
        PROPERTY_TYPE = "property_type", _("Property types")
        LOCATION = "location", _("Locations")

    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    discount_type = models.CharField(max_length=20, choices=DiscountType.choices)
    discount_value = models.DecimalField(max_digits=14, decimal_places=2)
    max_discount_amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    min_order_amount = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    min_nights = models.PositiveSmallIntegerField(null=True, blank=True)
    applicable_days = models.CharField(
        max_length=50,
        blank=True,
        help_text=_("Comma-separated check-in weekdays, e.g. 'Mon,Tue'. Empty means every day."),
    )
    applicable_to = models.CharField(
        max_length=20,
        choices=ApplicableTo.choices,
        default=ApplicableTo.ALL,
    )
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    max_total_uses = models.PositiveIntegerField(null=True, blank=True)
    max_uses_per_customer = models.PositiveIntegerField(null=True, blank=True, default=1)
    used_count = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Coupon")
        verbose_name_plural = _("Coupons")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="coupon_valid_period",
            ),
            models.CheckConstraint(
                condition=models.Q(max_total_uses__isnull=True)
                | models.Q(used_count__lte=models.F("max_total_uses")),
                name="coupon_used_count_within_limit",
            ),
        ]
        indexes = [
            models.Index(fields=["is_active", "end_date"], name="coupon_active_end_date_idx"),
        ]

    def __str__(self) -> str:
        return self.code

    def clean(self) -> None:
        errors = {}
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            errors["end_date"] = _("End date must be after start date.")
        if self.discount_value is not None and self.discount_value <= 0:
            errors["discount_value"] = _("Discount value must be positive.")
        elif self.discount_type == self.DiscountType.PERCENTAGE and self.discount_value > 100:
            errors["discount_value"] = _("A percentage discount must be between 1 and 100.")
        elif self.discount_type == self.DiscountType.FREE_NIGHT and self.discount_value != int(self.discount_value):
            errors["discount_value"] = _("Free nights must be a whole number.")
        for day in filter(None, (part.strip() for part in self.applicable_days.split(","))):
            if day not in WEEKDAY_ABBREVIATIONS:
                errors["applicable_days"] = _("Unknown weekday '%(day)s'.") % {"day": day}
        if errors:
            raise ValidationError(errors)

    def to_terms(self) -> CouponTerms:
        targets = frozenset(
            (application.applicable_type, application.applicable_id)
            for application in self.applications.all()
        )
        return CouponTerms(
            code=self.code,
            discount_type=self.discount_type,
            discount_value=Decimal(self.discount_value),
            is_active=self.is_active,
            start_date=self.start_date,
            end_date=self.end_date,
            max_discount_amount=self.max_discount_amount,
            min_order_amount=self.min_order_amount,
            min_nights=self.min_nights,
            applicable_days=self.applicable_days,
            applicable_to=self.applicable_to,
            applicable_targets=targets,
            max_total_uses=self.max_total_uses,
            max_uses_per_customer=self.max_uses_per_customer,
            used_count=self.used_count,
        )


class CouponApplication(models.Model):
    """Scopes a coupon to a property, property type or location."""

    class ApplicableType(models.TextChoices):
        PROPERTY = "property", _("Property")
        PROPERTY_TYPE = "property_type", _("Property type")
        LOCATION = "location", _("Location")

    coupon = models.ForeignKey(Coupon, on_delete=models.CASCADE, related_name="applications")
    applicable_type = models.CharField(max_length=20, choices=ApplicableType.choices)
    applicable_id = models.PositiveBigIntegerField()

    class Meta:
        verbose_name = _("Coupon applicability")
        verbose_name_plural = _("Coupon applicability")
        constraints = [
            models.UniqueConstraint(
                fields=["coupon", "applicable_type", "applicable_id"],
                name="coupon_application_unique",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.coupon_id}: {self.applicable_type}={self.applicable_id}"


class CouponUsage(models.Model):
    """Redemption of a coupon by a booking; at most one per booking."""

    coupon = models.ForeignKey(Coupon, on_delete=models.PROTECT, related_name="usages")
    booking = models.OneToOneField(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="coupon_usage",
    )
    customer_id = models.PositiveBigIntegerField(db_index=True)
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2)
    applied_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Coupon usage")
        verbose_name_plural = _("Coupon usages")
        ordering = ["-applied_at"]
        indexes = [
            models.Index(fields=["coupon", "customer_id"], name="coupon_usage_customer_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.coupon_id} used by booking {self.booking_id}"
