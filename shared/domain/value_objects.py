"""
Common Value Objects

Value objects used across multiple domains:
- Money: Represents monetary amounts with currency
- DateRange: Represents a rental period (start to end, same-day allowed)
"""

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from shared.domain.base import ValueObject

SUPPORTED_CURRENCIES = ('KES', 'USD', 'EUR')

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Represents a monetary amount with currency.
    Immutable and supports arithmetic operations. Amounts are never rounded;
    fractional sub-units are kept as computed.
    """
    amount: Decimal
    currency: str = 'KES'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency:
            raise ValueError("Currency is required")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")

    @classmethod
    def zero(cls, currency: str = 'KES') -> 'Money':
        return cls(Decimal('0'), currency)

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money objects"""
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        """Subtract two money objects"""
        if not isinstance(other, Money):
            raise TypeError("Can only subtract Money from Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot subtract different currencies: {self.currency} and {other.currency}")
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor) -> 'Money':
        """Multiply money by a factor"""
        if isinstance(factor, bool) or not isinstance(factor, (int, float, Decimal)):
            raise TypeError("Can only multiply Money by number")
        return Money(self.amount * Decimal(str(factor)), self.currency)

    def percent(self, rate) -> 'Money':
        """Return ``rate`` percent of this amount (``amount * rate / 100``)"""
        return Money(self.amount * Decimal(str(rate)) / Decimal('100'), self.currency)

    def is_zero(self) -> bool:
        return self.amount == 0

    def __str__(self):
        return f"{self.currency} {self.amount:,.2f}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a rental period from start_date to end_date. A same-day
    range is valid and is billed as one full day.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        if self.start_date is None or self.end_date is None:
            raise ValueError("Both start and end dates are required")
        if self.end_date < self.start_date:
            raise ValueError(f"End date ({self.end_date}) must not be before start date ({self.start_date})")

    @classmethod
    def is_valid(cls, start_date, end_date) -> bool:
        """Check whether the pair forms a complete, ordered range"""
        if start_date is None or end_date is None:
            return False
        try:
            return end_date >= start_date
        except TypeError:
            return False

    @property
    def billable_days(self) -> int:
        """
        Number of days charged for this range

        Partial days round up and at least one day is always charged.
        """
        elapsed = (self.end_date - self.start_date).total_seconds()
        return max(math.ceil(elapsed / SECONDS_PER_DAY), 1)

    def contains(self, check_date: date) -> bool:
        """Check if a date is within this range (both ends inclusive)"""
        return self.start_date <= check_date <= self.end_date

    def __str__(self):
        return f"{self.start_date.strftime('%d.%m.%Y')} - {self.end_date.strftime('%d.%m.%Y')}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
