"""Bookings app package.

This app owns the booking lifecycle: creation with pricing and coupons,
confirmation, cancellation, check-in and check-out, and the administrative
overrides. Every change runs as a command inside a unit of work that locks
the room type row, so capacity holds under concurrent requests.
"""
