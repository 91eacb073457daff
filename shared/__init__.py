"""
Shared Kernel

Base classes, value objects, errors and transaction plumbing used by the
inventory, pricing, coupon and booking contexts.
"""
