"""Notification services for booking e-mails and in-app messages."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils.html import escape, strip_tags  # type: ignore

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import Booking

logger = logging.getLogger(__name__)


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(recipient_email: str, subject: str, html_message: str) -> bool:
    """
    Send one e-mail with an HTML body and its plain-text fallback.

    Returns:
        bool: True if the message was handed to the mail backend
    """
    if not recipient_email:
        logger.warning(f"Skipping e-mail without recipient: {subject}")
        return False

    try:
        send_mail(
            subject=subject,
            message=strip_tags(html_message),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )
        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def guest_contact(booking: "Booking") -> tuple[str, str]:
    """(name, email) of whoever made the booking"""
    if booking.user_id is not None and booking.user is not None:
        user = booking.user
        name = booking.guest_name or user.get_full_name() or user.get_username()
        return name, booking.guest_email or user.email
    return booking.guest_name, booking.guest_email


def _booking_lines(booking: "Booking") -> str:
    details = booking.booking_details or {}
    lines = [
        f"<li><strong>Booking code:</strong> {booking.booking_code}</li>",
        f"<li><strong>Item:</strong> {escape(booking.item_name)}</li>",
    ]
    if booking.visit_date:
        lines.append(f"<li><strong>Visit date:</strong> {booking.visit_date:%d %b %Y}</li>")
    lines.append(
        f"<li><strong>Guests:</strong> {details.get('adults', booking.slots_booked)} adult(s), "
        f"{details.get('children', 0)} child(ren)</li>"
    )
    for facility in details.get("facilities", []):
        lines.append(
            f"<li>{escape(facility['name'])}: {facility['start_date']} to {facility['end_date']} "
            f"({facility['days']} day(s))</li>"
        )
    for activity in details.get("activities", []):
        lines.append(f"<li>{escape(activity['name'])} x {activity['people']}</li>")
    lines.append(f"<li><strong>Total:</strong> {booking.currency} {booking.total_amount:,.2f}</li>")
    return "\n".join(lines)


def send_booking_confirmation_email(booking: "Booking") -> bool:
    """Confirmation to the guest once the booking is paid."""
    name, email = guest_contact(booking)
    html_message = f"""
    <html>
    <body>
        <h2>Hello, {escape(name or 'traveller')}!</h2>
        <p>Your booking is confirmed.</p>
        <ul>
        {_booking_lines(booking)}
        </ul>
        <p>Show your booking code on arrival.</p>
    </body>
    </html>
    """
    return send_email_notification(email, f"Booking #{booking.booking_code} confirmed", html_message)


def send_new_booking_to_host_email(booking: "Booking") -> bool:
    """Tell the host that one of their listings was booked."""
    host = booking.host
    if host is None:
        logger.info(f"Booking {booking.booking_code} has no host to notify")
        return False

    guest_name, guest_email = guest_contact(booking)
    html_message = f"""
    <html>
    <body>
        <h2>New booking for {escape(booking.item_name)}</h2>
        <p>{escape(guest_name or guest_email)} has booked and paid.</p>
        <ul>
        {_booking_lines(booking)}
        <li><strong>Guest phone:</strong> {escape(booking.guest_phone or '-')}</li>
        </ul>
    </body>
    </html>
    """
    return send_email_notification(host.email, f"New booking #{booking.booking_code}", html_message)


def send_payment_failed_email(booking: "Booking") -> bool:
    name, email = guest_contact(booking)
    html_message = f"""
    <html>
    <body>
        <h2>Hello, {escape(name or 'traveller')}!</h2>
        <p>We could not complete the payment for booking #{booking.booking_code}.</p>
        <p>{escape(booking.failure_reason)}</p>
        <p>Your booking has been kept; you can retry the payment from your bookings page.</p>
    </body>
    </html>
    """
    return send_email_notification(email, f"Payment for booking #{booking.booking_code} did not go through", html_message)


# ============================================================================
# IN-APP NOTIFICATIONS
# ============================================================================

def create_in_app_notification(user, title: str, message: str) -> bool:
    try:
        from .models import Notification

        Notification.objects.create(user=user, title=title, message=message)
        logger.info(f"In-app notification created for user {user.pk}: {title}")
        return True

    except Exception as e:
        logger.error(f"Failed to create in-app notification for user {user.pk}: {e}", exc_info=True)
        return False
