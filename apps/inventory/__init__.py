"""Inventory app package.

Holds the sellable stock of the booking engine: properties (as reference
data) and their room types with a fixed number of identical rooms. The
per-night ledger of committed rooms is derived from bookings and is never
stored; see ``apps.inventory.domain.ledger``.
"""
