from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Property",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("host_id", models.PositiveBigIntegerField(db_index=True)),
                ("name", models.CharField(max_length=255)),
                ("property_type_id", models.PositiveIntegerField(blank=True, null=True)),
                ("location_id", models.PositiveIntegerField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Property",
                "verbose_name_plural": "Properties",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="RoomType",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "total_rooms",
                    models.PositiveIntegerField(
                        default=1,
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                ("base_price", models.DecimalField(decimal_places=2, max_digits=14)),
                ("weekend_price", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("holiday_price", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                (
                    "weekly_discount_percent",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Discount applied to stays of at least 7 nights.",
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(100),
                        ],
                    ),
                ),
                (
                    "monthly_discount_percent",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Discount applied to stays of at least 28 nights; replaces the weekly discount.",
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(0),
                            django.core.validators.MaxValueValidator(100),
                        ],
                    ),
                ),
                ("max_adults", models.PositiveSmallIntegerField(default=2)),
                ("max_children", models.PositiveSmallIntegerField(default=0)),
                ("max_guests", models.PositiveSmallIntegerField(default=2)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "property",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="room_types",
                        to="inventory.property",
                    ),
                ),
            ],
            options={
                "verbose_name": "Room type",
                "verbose_name_plural": "Room types",
                "ordering": ["property_id", "name"],
                "indexes": [
                    models.Index(fields=["property", "is_active"], name="room_type_property_active_idx"),
                ],
                "constraints": [
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
                ],
            },
        ),
    ]
