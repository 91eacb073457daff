from datetime import date
from decimal import Decimal

import pytest

from shared.domain.value_objects import DateRange, Money


def test_money_rounds_half_up_to_currency_minor_unit():
    assert Money(Decimal("1000.5"), "VND").rounded().amount == Decimal("1001")
    assert Money(Decimal("10.005"), "USD").rounded().amount == Decimal("10.01")


def test_money_rejects_negative_and_unknown_currency():
    with pytest.raises(ValueError):
        Money(Decimal("-1"))
    with pytest.raises(ValueError):
        Money(Decimal("1"), "XYZ")


def test_money_arithmetic_requires_same_currency():
    total = Money(Decimal("100"), "USD") + Money(Decimal("50"), "USD")
    assert total == Money(Decimal("150"), "USD")
    with pytest.raises(ValueError):
        Money(Decimal("1"), "USD") + Money(Decimal("1"), "EUR")


def test_date_range_is_half_open():
    stay = DateRange(date(2025, 3, 10), date(2025, 3, 13))

    assert len(stay) == 3
    assert list(stay.nights()) == [date(2025, 3, 10), date(2025, 3, 11), date(2025, 3, 12)]
    assert stay.contains(date(2025, 3, 10))
    assert not stay.contains(date(2025, 3, 13))


def test_adjacent_ranges_do_not_overlap():
    first = DateRange(date(2025, 3, 10), date(2025, 3, 13))

    assert not first.overlaps_with(DateRange(date(2025, 3, 13), date(2025, 3, 15)))
    assert first.overlaps_with(DateRange(date(2025, 3, 12), date(2025, 3, 15)))


def test_date_range_requires_start_before_end():
    with pytest.raises(ValueError):
        DateRange(date(2025, 3, 10), date(2025, 3, 10))
