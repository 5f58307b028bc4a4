"""Booking domain exceptions."""

from typing import Iterable


class BookingError(Exception):
    """Base exception for booking operations."""


class BookingValidationError(BookingError):
    """Raised when a draft is submitted while a wizard validator still fails."""

    def __init__(self, errors: Iterable[str]):
        self.errors = tuple(errors)
        super().__init__("; ".join(self.errors) or "Booking is incomplete")


class BookingStateError(BookingError):
    """Raised on an illegal booking status transition."""


class CheckoutFailed(BookingError):
    """The booking was saved but its checkout could not be started; it is left retryable."""

    def __init__(self, booking, message: str = "Payment provider unavailable"):
        self.booking = booking
        super().__init__(message)
