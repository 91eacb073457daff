from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("inventory", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_code", models.CharField(editable=False, max_length=24, unique=True)),
                ("customer_id", models.PositiveBigIntegerField(db_index=True)),
                ("check_in", models.DateField()),
                ("check_out", models.DateField()),
                ("nights", models.PositiveSmallIntegerField(default=1)),
                ("rooms_count", models.PositiveSmallIntegerField(default=1)),
                ("adults", models.PositiveSmallIntegerField(default=1)),
                ("children", models.PositiveSmallIntegerField(default=0)),
                ("guest_name", models.CharField(blank=True, max_length=255)),
                ("guest_email", models.EmailField(blank=True, max_length=254)),
                ("guest_phone", models.CharField(blank=True, max_length=32)),
                ("special_requests", models.TextField(blank=True)),
                ("currency", models.CharField(default="VND", max_length=3)),
                ("room_price_subtotal", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("long_stay_discount_percent", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=5)),
                ("long_stay_discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                (
                    "room_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        help_text="Quoted price of the stay before any coupon.",
                        max_digits=14,
                    ),
                ),
                ("coupon_code", models.CharField(blank=True, max_length=50)),
                ("coupon_discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("checked_in", "Checked in"),
                            ("checked_out", "Checked out"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="confirmed",
                        max_length=20,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("unpaid", "Unpaid"),
                            ("paid", "Paid"),
                            ("refunded", "Refunded"),
                            ("partial_refund", "Partially refunded"),
                        ],
                        default="unpaid",
                        max_length=20,
                    ),
                ),
                ("booked_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("checked_out_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("cancelled_by", models.PositiveBigIntegerField(blank=True, null=True)),
                (
                    "cancellation_source",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("customer", "Customer"),
                            ("host", "Host"),
                            ("admin", "Administrator"),
                            ("system", "System"),
                        ],
                        max_length=20,
                    ),
                ),
                ("cancellation_reason", models.CharField(blank=True, max_length=500)),
                ("refund_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("cancellation_fee", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=14)),
                ("admin_note", models.TextField(blank=True)),
                (
                    "property",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="inventory.property",
                    ),
                ),
                (
                    "room_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="inventory.roomtype",
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["-booked_at"],
                "indexes": [
                    models.Index(fields=["room_type", "check_in", "check_out"], name="booking_room_type_dates_idx"),
                    models.Index(fields=["status"], name="booking_status_idx"),
                    models.Index(fields=["customer_id", "status"], name="booking_customer_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(check_out__gt=models.F("check_in")),
                        name="booking_valid_dates",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(rooms_count__gte=1),
                        name="booking_rooms_count_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(nights__gte=1),
                        name="booking_nights_positive",
                    ),
                ],
            },
        ),
    ]
