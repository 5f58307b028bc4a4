from datetime import date, datetime
from decimal import Decimal

import pytest

from shared.domain.value_objects import DateRange, Money


def test_money_percent_is_exact():
    assert Money(Decimal("10000")).percent(20) == Money(Decimal("2000"))
    assert Money(Decimal("2000")).percent(Decimal("5")).amount == Decimal("100")


def test_money_rejects_negative_amount():
    with pytest.raises(ValueError):
        Money(Decimal("-1"))


def test_money_cannot_mix_currencies():
    with pytest.raises(ValueError):
        Money(Decimal("1"), "KES") + Money(Decimal("1"), "USD")


def test_same_day_range_bills_one_day():
    assert DateRange(date(2026, 11, 1), date(2026, 11, 1)).billable_days == 1


def test_partial_day_rounds_up():
    period = DateRange(datetime(2026, 11, 1, 10), datetime(2026, 11, 2, 12))
    assert period.billable_days == 2


def test_inverted_range_is_invalid():
    assert not DateRange.is_valid(date(2026, 11, 3), date(2026, 11, 1))
    assert not DateRange.is_valid(None, date(2026, 11, 1))
    with pytest.raises(ValueError):
        DateRange(date(2026, 11, 3), date(2026, 11, 1))
