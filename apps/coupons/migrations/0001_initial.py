import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Coupon",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=50, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "discount_type",
                    models.CharField(
                        choices=[
                            ("percentage", "Percentage"),
                            ("fixed_amount", "Fixed amount"),
                            ("free_night", "Free nights"),
                        ],
                        max_length=20,
                    ),
                ),
                ("discount_value", models.DecimalField(decimal_places=2, max_digits=14)),
                ("max_discount_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("min_order_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("min_nights", models.PositiveSmallIntegerField(blank=True, null=True)),
                (
                    "applicable_days",
                    models.CharField(
                        blank=True,
                        help_text="Comma-separated check-in weekdays, e.g. 'Mon,Tue'. Empty means every day.",
                        max_length=50,
                    ),
                ),
                (
                    "applicable_to",
                    models.CharField(
                        choices=[
                            ("all", "All properties"),
                            ("property", "Specific properties"),
                            ("property_type", "Property types"),
                            ("location", "Locations"),
                        ],
                        default="all",
                        max_length=20,
                    ),
                ),
                ("start_date", models.DateTimeField()),
                ("end_date", models.DateTimeField()),
                ("max_total_uses", models.PositiveIntegerField(blank=True, null=True)),
                ("max_uses_per_customer", models.PositiveIntegerField(blank=True, default=1, null=True)),
                ("used_count", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Coupon",
                "verbose_name_plural": "Coupons",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["is_active", "end_date"], name="coupon_active_end_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(end_date__gt=models.F("start_date")),
                        name="coupon_valid_period",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(max_total_uses__isnull=True)
                        | models.Q(used_count__lte=models.F("max_total_uses")),
                        name="coupon_used_count_within_limit",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CouponApplication",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "applicable_type",
                    models.CharField(
                        choices=[
                            ("property", "Property"),
                            ("property_type", "Property type"),
                            ("location", "Location"),
                        ],
                        max_length=20,
                    ),
                ),
                ("applicable_id", models.PositiveBigIntegerField()),
                (
                    "coupon",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="applications",
                        to="coupons.coupon",
                    ),
                ),
            ],
            options={
                "verbose_name": "Coupon applicability",
                "verbose_name_plural": "Coupon applicability",
                "constraints": [
                    models.UniqueConstraint(
                        fields=["coupon", "applicable_type", "applicable_id"],
                        name="coupon_application_unique",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CouponUsage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("customer_id", models.PositiveBigIntegerField(db_index=True)),
                ("discount_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("applied_at", models.DateTimeField(auto_now_add=True)),
                (
                    "booking",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="coupon_usage",
                        to="bookings.booking",
                    ),
                ),
                (
                    "coupon",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="usages",
                        to="coupons.coupon",
                    ),
                ),
            ],
            options={
                "verbose_name": "Coupon usage",
                "verbose_name_plural": "Coupon usages",
                "ordering": ["-applied_at"],
                "indexes": [
                    models.Index(fields=["coupon", "customer_id"], name="coupon_usage_customer_idx"),
                ],
            },
        ),
    ]
