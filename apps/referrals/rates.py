"""
Referral rate table

Each item category has a service fee rate (percent of the gross booking
the platform keeps) and a commission rate (percent of that service fee
paid to the referrer). Unconfigured categories fall back to the defaults
from settings.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from django.conf import settings

from apps.bookings.domain.selection import ItemType, to_decimal
from shared.domain.base import ValueObject
from shared.domain.value_objects import Money

DEFAULT_SERVICE_FEE_RATE = Decimal('20')
DEFAULT_COMMISSION_RATE = Decimal('5')

# Matches CommissionEntry.base_amount and commission_amount (decimal_places=4)
COMMISSION_PRECISION = Decimal('0.0001')


@dataclass(frozen=True)
class CommissionRates(ValueObject):
    service_fee_rate: Decimal
    commission_rate: Decimal

    @classmethod
    def defaults(cls) -> 'CommissionRates':
        return cls(
            service_fee_rate=to_decimal(getattr(settings, 'REFERRAL_DEFAULT_SERVICE_FEE_RATE', DEFAULT_SERVICE_FEE_RATE)),
            commission_rate=to_decimal(getattr(settings, 'REFERRAL_DEFAULT_COMMISSION_RATE', DEFAULT_COMMISSION_RATE)),
        )

    def split(self, booking_amount, currency: str = 'KES') -> Tuple[Money, Money]:
        """
        Two-stage split of a gross booking amount

        Returns (service_fee, commission). The commission is a share of the
        service fee, never of the gross amount. Each stage is rounded half-up
        to four places before the next is computed, so the stored fee and
        rate reproduce the stored commission.
        """
        service_fee = _quantize(Money(booking_amount, currency).percent(self.service_fee_rate))
        commission = _quantize(service_fee.percent(self.commission_rate))
        return service_fee, commission


def _quantize(money: Money) -> Money:
    return Money(money.amount.quantize(COMMISSION_PRECISION, rounding=ROUND_HALF_UP), money.currency)


def get_rates(item_type: Optional[str]) -> CommissionRates:
    """Current rates for ``item_type``; either rate missing falls back to its default"""
    from apps.referrals.models import ReferralSettings

    defaults = CommissionRates.defaults()
    if not item_type:
        return defaults

    row = ReferralSettings.objects.order_by('pk').first()
    if row is None:
        return defaults

    service_fee_rate, commission_rate = row.rates_for(ItemType.normalize(item_type))
    return CommissionRates(
        service_fee_rate=to_decimal(service_fee_rate) if service_fee_rate is not None else defaults.service_fee_rate,
        commission_rate=to_decimal(commission_rate) if commission_rate is not None else defaults.commission_rate,
    )
