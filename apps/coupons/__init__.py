"""Coupons app package.

Promotional coupons that adjust the price of a booking: validation in a
fixed order, discount calculation, and usage tracking that stays atomic
with the booking it belongs to.
"""
