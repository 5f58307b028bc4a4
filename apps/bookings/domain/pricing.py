"""
Pricing Calculator

Pure, stateless conversion of a booking selection into an amount:

    total = entrance fee + sum(facility costs) + sum(activity costs)

- Entrance fee: adults * adult price + children * child price (0 for free entry)
- Facility: unit price * billable days, at least one day; same-day rental = 1 day
- Activity: unit price * people (at least one person)

Amounts are Decimal and are never rounded here; callers display or submit
the raw totals. A facility without a valid date range costs 0 *and* is
reported as invalid, so the wizard can block instead of silently
undercharging.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Tuple

from shared.domain.value_objects import Money
from apps.bookings.domain.selection import (
    ActivitySelection,
    EntranceType,
    FacilitySelection,
    to_decimal,
)

ZERO = Decimal('0')


@dataclass(frozen=True)
class LineCharge:
    """One priced line of the booking (facility or activity)"""
    name: str
    unit_price: Decimal
    quantity: int
    amount: Decimal
    is_valid: bool = True


@dataclass(frozen=True)
class PriceBreakdown:
    entrance_fee: Decimal
    facilities: Tuple[LineCharge, ...]
    activities: Tuple[LineCharge, ...]

    @property
    def facilities_total(self) -> Decimal:
        return sum((line.amount for line in self.facilities), ZERO)

    @property
    def activities_total(self) -> Decimal:
        return sum((line.amount for line in self.activities), ZERO)

    @property
    def total(self) -> Decimal:
        return self.entrance_fee + self.facilities_total + self.activities_total

    @property
    def invalid_facilities(self) -> Tuple[str, ...]:
        return tuple(line.name for line in self.facilities if not line.is_valid)

    @property
    def is_complete(self) -> bool:
        return not self.invalid_facilities

    def as_money(self, currency: str = 'KES') -> Money:
        return Money(self.total, currency)


class PricingCalculator:
    """Stateless pricing rules; every method is a pure function"""

    @staticmethod
    def entrance_fee(adults: int, children: int, price_adult, price_child, entrance_type) -> Decimal:
        if EntranceType(entrance_type) == EntranceType.FREE:
            return ZERO
        return adults * to_decimal(price_adult) + children * to_decimal(price_child)

    @staticmethod
    def facility_charge(selection: FacilitySelection) -> LineCharge:
        unit_price = to_decimal(selection.unit_price)
        period = selection.period
        if period is None:
            return LineCharge(selection.name, unit_price, 0, ZERO, is_valid=False)
        days = period.billable_days
        return LineCharge(selection.name, unit_price, days, unit_price * days)

    @classmethod
    def facility_cost(cls, selection: FacilitySelection) -> Decimal:
        return cls.facility_charge(selection).amount

    @staticmethod
    def activity_charge(selection: ActivitySelection) -> LineCharge:
        unit_price = to_decimal(selection.unit_price)
        people = max(int(selection.people_count or 0), 1)
        return LineCharge(selection.name, unit_price, people, unit_price * people)

    @classmethod
    def activity_cost(cls, selection: ActivitySelection) -> Decimal:
        return cls.activity_charge(selection).amount

    @classmethod
    def breakdown(
        cls,
        *,
        adults: int,
        children: int,
        price_adult,
        price_child,
        entrance_type,
        facilities: Iterable[FacilitySelection] = (),
        activities: Iterable[ActivitySelection] = (),
    ) -> PriceBreakdown:
        return PriceBreakdown(
            entrance_fee=cls.entrance_fee(adults, children, price_adult, price_child, entrance_type),
            facilities=tuple(cls.facility_charge(f) for f in facilities),
            activities=tuple(cls.activity_charge(a) for a in activities),
        )

    @classmethod
    def total(cls, **kwargs) -> Decimal:
        return cls.breakdown(**kwargs).total
