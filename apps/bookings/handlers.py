"""Booking event subscribers kept inside the bookings app."""

import logging

from apps.bookings.cache import invalidate_user_bookings
from apps.bookings.domain.events import (
    BookingCancelled,
    BookingPaid,
    BookingPaymentFailed,
    BookingSubmitted,
)
from shared.application.message_bus import message_bus

logger = logging.getLogger(__name__)


def invalidate_bookings_cache(event) -> None:
    """Any status change makes the owner's cached booking list stale"""
    invalidate_user_bookings(event.user_id)


def register_handlers(bus=message_bus) -> None:
    for event_type in (BookingSubmitted, BookingPaid, BookingPaymentFailed, BookingCancelled):
        bus.register_event_handler(event_type, invalidate_bookings_cache)
