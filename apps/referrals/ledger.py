"""
Referral Ledger

Credits commissions for converted referrals and pays them out.

Conversion is idempotent per tracking row: the row is locked, checked and
flipped to ``converted`` in the same transaction that creates the
CommissionEntry, so two independent callers (payment confirmation and a
retried handler) can never both credit it. Withdrawals are serialized per
referrer by locking the referrer's user row before the balance is read.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

import structlog
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from apps.bookings.domain.selection import to_decimal
from apps.referrals.exceptions import InsufficientBalance, InvalidWithdrawalAmount
from apps.referrals.models import CommissionEntry, ReferralTracking, Withdrawal
from apps.referrals.rates import get_rates

logger = logging.getLogger(__name__)
audit_log = structlog.get_logger("referrals")

ZERO = Decimal('0')


@dataclass(frozen=True)
class ReferralStats:
    total_referred: int
    total_bookings: int
    host_earnings: Decimal
    booking_earnings: Decimal
    lifetime_earnings: Decimal
    withdrawable_balance: Decimal
    total_booking_amount: Decimal

    def to_dict(self) -> dict:
        return {
            'total_referred': self.total_referred,
            'total_bookings': self.total_bookings,
            'host_earnings': str(self.host_earnings),
            'booking_earnings': str(self.booking_earnings),
            'lifetime_earnings': str(self.lifetime_earnings),
            'withdrawable_balance': str(self.withdrawable_balance),
            'total_booking_amount': str(self.total_booking_amount),
        }


class ReferralLedger:

    def record_conversion(
        self,
        tracking_id,
        booking_id,
        booking_amount,
        item_type: Optional[str] = None,
    ) -> Optional[CommissionEntry]:
        """
        Credit the referrer for a paid booking

        Returns the new entry, or None when the tracking row is unknown or
        already converted. Either both the entry and the tracking update
        are written or neither is.
        """
        booking_amount = to_decimal(booking_amount)

        with transaction.atomic():
            tracking = ReferralTracking.objects.select_for_update().filter(pk=tracking_id).first()
            if tracking is None:
                logger.info(f"No referral tracking {tracking_id}; nothing to credit for booking {booking_id}")
                return None
            if tracking.is_converted:
                logger.info(f"Referral tracking {tracking_id} already converted; skipping booking {booking_id}")
                return None

            rates = get_rates(tracking.item_type or item_type)
            service_fee, commission = rates.split(booking_amount)
            now = timezone.now()

            entry = CommissionEntry.objects.create(
                referrer_id=tracking.referrer_id,
                referred_user_id=tracking.referred_user_id,
                booking_id=booking_id,
                tracking=tracking,
                commission_type=CommissionEntry.CommissionType.BOOKING,
                booking_amount=booking_amount,
                service_fee_rate=rates.service_fee_rate,
                base_amount=service_fee.amount,
                rate=rates.commission_rate,
                commission_amount=commission.amount,
                status=CommissionEntry.Status.PAID,
                paid_at=now,
            )

            tracking.status = ReferralTracking.Status.CONVERTED
            tracking.converted_at = now
            tracking.save(update_fields=['status', 'converted_at'])

        audit_log.info(
            "referral_commission_credited",
            referrer_id=entry.referrer_id,
            booking_id=booking_id,
            tracking_id=tracking_id,
            booking_amount=str(booking_amount),
            service_fee=str(service_fee.amount),
            commission=str(commission.amount),
        )
        return entry

    def _withdrawable(self, referrer_id):
        return CommissionEntry.objects.filter(
            referrer_id=referrer_id,
            status=CommissionEntry.Status.PAID,
            withdrawn_at__isnull=True,
        )

    def withdrawable_balance(self, referrer_id) -> Decimal:
        return self._withdrawable(referrer_id).aggregate(
            total=Coalesce(Sum('commission_amount'), ZERO)
        )['total']

    def lifetime_earnings(self, referrer_id) -> Decimal:
        return CommissionEntry.objects.filter(
            referrer_id=referrer_id,
            status=CommissionEntry.Status.PAID,
        ).aggregate(total=Coalesce(Sum('commission_amount'), ZERO))['total']

    def withdraw(self, referrer_id, amount) -> Withdrawal:
        """
        Consume withdrawable entries, oldest paid first, until they cover ``amount``

        Entries are not split, so the consumed total can exceed the request
        by less than one entry.
        """
        amount = to_decimal(amount)
        if amount <= 0:
            raise InvalidWithdrawalAmount("Withdrawal amount must be positive")

        with transaction.atomic():
            get_user_model().objects.select_for_update().get(pk=referrer_id)
            entries: List[CommissionEntry] = list(
                self._withdrawable(referrer_id).select_for_update().order_by('paid_at', 'id')
            )
            available = self.withdrawable_balance(referrer_id)
            if amount > available:
                audit_log.warning(
                    "referral_withdrawal_rejected",
                    referrer_id=referrer_id,
                    requested=str(amount),
                    available=str(available),
                )
                raise InsufficientBalance(amount, available)

            consumed: List[CommissionEntry] = []
            consumed_total = ZERO
            for entry in entries:
                if consumed_total >= amount:
                    break
                consumed.append(entry)
                consumed_total += entry.commission_amount

            withdrawal = Withdrawal.objects.create(
                referrer_id=referrer_id,
                amount_requested=amount,
                amount_consumed=consumed_total,
            )
            CommissionEntry.objects.filter(pk__in=[entry.pk for entry in consumed]).update(
                withdrawn_at=timezone.now(),
                withdrawal=withdrawal,
            )

        audit_log.info(
            "referral_withdrawal_created",
            referrer_id=referrer_id,
            withdrawal_id=withdrawal.pk,
            requested=str(amount),
            consumed=str(consumed_total),
            entries=len(consumed),
        )
        return withdrawal

    def stats(self, referrer_id) -> ReferralStats:
        entries = list(
            CommissionEntry.objects.filter(referrer_id=referrer_id).values(
                'commission_type', 'commission_amount', 'booking_amount', 'status', 'withdrawn_at',
            )
        )
        referred = (
            ReferralTracking.objects.filter(referrer_id=referrer_id, referred_user__isnull=False)
            .values('referred_user')
            .distinct()
            .count()
        )

        def total(rows, key='commission_amount'):
            return sum((row[key] for row in rows), ZERO)

        paid = [row for row in entries if row['status'] == CommissionEntry.Status.PAID]
        return ReferralStats(
            total_referred=referred,
            total_bookings=len(entries),
            host_earnings=total(r for r in entries if r['commission_type'] == CommissionEntry.CommissionType.HOST),
            booking_earnings=total(r for r in entries if r['commission_type'] == CommissionEntry.CommissionType.BOOKING),
            lifetime_earnings=total(paid),
            withdrawable_balance=total(r for r in paid if r['withdrawn_at'] is None),
            total_booking_amount=total(paid, 'booking_amount'),
        )


ledger = ReferralLedger()
