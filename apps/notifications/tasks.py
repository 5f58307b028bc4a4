"""Celery tasks for booking notifications."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from apps.bookings.models import Booking

from .services import (
    create_in_app_notification,
    send_booking_confirmation_email,
    send_new_booking_to_host_email,
    send_payment_failed_email,
)

logger = logging.getLogger(__name__)


@shared_task(name="notifications.send_booking_confirmations")
def send_booking_confirmations(booking_id: int) -> dict[str, bool]:
    """E-mail the guest and the host about a paid booking."""
    try:
        booking = Booking.objects.select_related("user", "host").get(pk=booking_id)
    except Booking.DoesNotExist:
        logger.warning(f"Booking {booking_id} not found for confirmations")
        return {"guest": False, "host": False}

    result = {
        "guest": send_booking_confirmation_email(booking),
        "host": send_new_booking_to_host_email(booking),
    }
    if booking.host is not None:
        create_in_app_notification(
            booking.host,
            f"New booking #{booking.booking_code}",
            f"{booking.item_name}: {booking.slots_booked} guest(s), {booking.currency} {booking.total_amount:,.2f}",
        )
    return result


@shared_task(name="notifications.send_payment_failed_notice")
def send_payment_failed_notice(booking_id: int) -> bool:
    booking = Booking.objects.select_related("user").filter(pk=booking_id).first()
    if booking is None or booking.status != Booking.Status.FAILED:
        return False
    return send_payment_failed_email(booking)
