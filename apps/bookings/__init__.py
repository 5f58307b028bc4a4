"""Bookings app package.

Holds the booking wizard (step sequencing, pricing, validation) and the
booking records it produces. Records change only through status
transitions driven by payment outcomes and cancellation.
"""
