"""Referral ledger exceptions."""

from decimal import Decimal


class ReferralError(Exception):
    """Base exception for referral operations."""


class InvalidWithdrawalAmount(ReferralError):
    """Withdrawal amount is zero or negative."""


class InsufficientBalance(ReferralError):
    """Requested withdrawal exceeds the withdrawable balance."""

    def __init__(self, requested: Decimal, available: Decimal):
        self.requested = requested
        self.available = available
        super().__init__(f"Maximum withdrawable amount is {available}, requested {requested}")
