"""URL routing for the booking domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    AvailabilityCalendarView,
    AvailabilityView,
    BookingViewSet,
    DetailedAvailabilityView,
    PriceQuoteView,
)

router = DefaultRouter()
router.include_root_view = False
router.register(r"", BookingViewSet, basename="booking")

urlpatterns = [
    path("availability/", AvailabilityView.as_view(), name="booking-availability"),
    path("availability/detailed/", DetailedAvailabilityView.as_view(), name="booking-availability-detailed"),
    path("availability/calendar/", AvailabilityCalendarView.as_view(), name="booking-availability-calendar"),
    path("quote/", PriceQuoteView.as_view(), name="booking-quote"),
    path("", include(router.urls)),
]
