"""Integration tests for coupon endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.coupons.models import Coupon
from apps.inventory.models import Property, RoomType

User = get_user_model()


class CouponAPITests(APITestCase):
    def setUp(self) -> None:
        self.guest = User.objects.create_user(username="guest", password="GuestPass123")
        self.other_guest = User.objects.create_user(username="other", password="OtherPass123")
        host = User.objects.create_user(username="host", password="HostPass123")
        self.property = Property.objects.create(host_id=host.id, name="Lakeside Lodge", location_id=2)
        self.room_type = RoomType.objects.create(
            property=self.property,
            name="Twin",
            total_rooms=2,
            base_price=Decimal("500000"),
        )
        now = timezone.now()
        self.coupon = Coupon.objects.create(
            code="SUMMER20",
            name="Summer",
            discount_type=Coupon.DiscountType.PERCENTAGE,
            discount_value=Decimal("20"),
            min_nights=2,
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=90),
        )
        check_in = timezone.localdate() + timedelta(days=10)
        self.client.force_authenticate(self.guest)
        response = self.client.post(
            reverse("booking-list"),
            {
                "property_id": self.property.id,
                "room_type_id": self.room_type.id,
                "check_in": str(check_in),
                "check_out": str(check_in + timedelta(days=2)),
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.booking = Booking.objects.get(pk=response.data["id"])

    def test_validate_reports_discount_or_reason(self) -> None:
        valid = self.client.post(
            reverse("coupon-validate"), {"code": "summer20", "booking_id": self.booking.id}, format="json"
        )
        self.assertEqual(valid.status_code, status.HTTP_200_OK)
        self.assertTrue(valid.data["is_valid"])
        self.assertEqual(valid.data["code"], "SUMMER20")
        self.assertEqual(Decimal(valid.data["discount_amount"]), self.booking.room_price * Decimal("0.2"))

        unknown = self.client.post(
            reverse("coupon-validate"), {"code": "NOPE", "booking_id": self.booking.id}, format="json"
        )
        self.assertFalse(unknown.data["is_valid"])
        self.assertEqual(unknown.data["error_reason"], "Coupon code does not exist.")
        self.assertIsNone(unknown.data["code"])

    def test_validate_someone_elses_booking_is_not_found(self) -> None:
        self.client.force_authenticate(self.other_guest)
        response = self.client.post(
            reverse("coupon-validate"), {"code": "SUMMER20", "booking_id": self.booking.id}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_apply_then_cancel_coupon(self) -> None:
        applied = self.client.post(
            reverse("coupon-apply"), {"code": "SUMMER20", "booking_id": self.booking.id}, format="json"
        )
        self.assertEqual(applied.status_code, status.HTTP_200_OK, applied.data)
        self.assertEqual(applied.data["coupon_code"], "SUMMER20")
        self.booking.refresh_from_db()
        self.assertEqual(self.booking.total_amount, self.booking.room_price * Decimal("0.8"))
        self.coupon.refresh_from_db()
        self.assertEqual(self.coupon.used_count, 1)

        removed = self.client.post(reverse("coupon-cancel"), {"booking_id": self.booking.id}, format="json")
        self.assertEqual(removed.status_code, status.HTTP_200_OK, removed.data)
        self.assertEqual(removed.data["coupon_code"], "")
        self.coupon.refresh_from_db()
        self.assertEqual(self.coupon.used_count, 0)

    def test_apply_rejected_coupon_returns_reason(self) -> None:
        self.coupon.min_nights = 5
        self.coupon.save()

        response = self.client.post(
            reverse("coupon-apply"), {"code": "SUMMER20", "booking_id": self.booking.id}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "coupon_error")
        self.assertEqual(response.data["detail"], "This coupon requires a stay of at least 5 nights.")

    def test_only_the_customer_can_apply(self) -> None:
        self.client.force_authenticate(self.other_guest)
        response = self.client.post(
            reverse("coupon-apply"), {"code": "SUMMER20", "booking_id": self.booking.id}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
