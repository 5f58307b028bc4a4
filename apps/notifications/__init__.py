"""Notifications app package.

Sends booking confirmations by e-mail and keeps in-app notifications for
hosts. Delivery runs in Celery tasks queued after a booking is paid, so a
failed send never affects the booking itself.
"""
