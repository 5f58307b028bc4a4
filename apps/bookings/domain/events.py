"""
Booking Domain Events

Events that represent things that have happened to a booking record.
They are published after successful transaction commits.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from shared.domain.base import DomainEvent


@dataclass
class BookingSubmitted(DomainEvent):
    """
    Event: A booking record was created from a wizard submission

    Triggers:
    - Invalidate the user's bookings cache
    """
    booking_id: int
    user_id: Any
    total: Decimal
    is_paid: bool


@dataclass
class BookingPaid(DomainEvent):
    """
    Event: Booking reached ``paid`` (provider success or zero-total booking)

    Triggers:
    - Send confirmations to guest and host
    - Credit the referral commission when the booking came from a referral link
    """
    booking_id: int
    amount: Decimal
    currency: str
    item_type: str
    user_id: Any = None
    referral_tracking_id: Optional[int] = None


@dataclass
class BookingPaymentFailed(DomainEvent):
    """
    Event: Provider reported a terminal failure (booking left retryable)
    """
    booking_id: int
    outcome: str
    message: str
    user_id: Any = None


@dataclass
class BookingCancelled(DomainEvent):
    booking_id: int
    reason: str
    old_status: str
    user_id: Any = None
