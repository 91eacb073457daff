"""Pricing app package.

Computes stay quotes for room types: nightly rate selection (weekend,
holiday, base), long-stay discounts and final rounding. The calculator is
pure and has no models of its own.
"""
