"""Credit referral commissions when a referred booking is paid."""

import logging

from apps.bookings.domain.events import BookingPaid
from apps.referrals.ledger import ledger
from shared.application.message_bus import message_bus

logger = logging.getLogger(__name__)


def credit_referral_commission(event: BookingPaid) -> None:
    if event.referral_tracking_id is None:
        return
    if event.amount <= 0:
        logger.debug(f"Booking {event.booking_id} is free; no referral commission")
        return
    ledger.record_conversion(
        event.referral_tracking_id,
        event.booking_id,
        event.amount,
        item_type=event.item_type,
    )


def register_handlers(bus=message_bus) -> None:
    bus.register_event_handler(BookingPaid, credit_referral_commission)
