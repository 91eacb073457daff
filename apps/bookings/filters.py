"""FilterSet definitions for booking listings."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    status = django_filters.MultipleChoiceFilter(choices=Booking.Status.choices)
    payment_status = django_filters.ChoiceFilter(choices=Booking.PaymentStatus.choices)
    property = django_filters.NumberFilter(field_name="property_id", lookup_expr="exact")
    room_type = django_filters.NumberFilter(field_name="room_type_id", lookup_expr="exact")
    check_in_from = django_filters.DateFilter(field_name="check_in", lookup_expr="gte")
    check_in_to = django_filters.DateFilter(field_name="check_in", lookup_expr="lte")
    code = django_filters.CharFilter(field_name="booking_code", lookup_expr="iexact")

    class Meta:
        model = Booking
        fields = [
            "status",
            "payment_status",
            "property",
            "room_type",
        ]
