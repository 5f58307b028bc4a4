"""Queue notification tasks from booking events."""

import logging

from apps.bookings.domain.events import BookingPaid, BookingPaymentFailed
from shared.application.message_bus import message_bus

logger = logging.getLogger(__name__)


def queue_booking_confirmations(event: BookingPaid) -> None:
    from .tasks import send_booking_confirmations

    try:
        send_booking_confirmations.delay(event.booking_id)
    except Exception as e:
        logger.error(f"Could not queue confirmations for booking {event.booking_id}: {e}", exc_info=True)


def queue_payment_failed_notice(event: BookingPaymentFailed) -> None:
    from .tasks import send_payment_failed_notice

    try:
        send_payment_failed_notice.delay(event.booking_id)
    except Exception as e:
        logger.error(f"Could not queue payment failure notice for booking {event.booking_id}: {e}", exc_info=True)


def register_handlers(bus=message_bus) -> None:
    bus.register_event_handler(BookingPaid, queue_booking_confirmations)
    bus.register_event_handler(BookingPaymentFailed, queue_payment_failed_notice)
