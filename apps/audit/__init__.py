"""Audit app package.

Default audit-log sink of the booking engine. Every committed mutation of
bookings and coupons is recorded with its old and new values.
"""
