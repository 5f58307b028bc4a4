"""Payments app package.

Starts checkouts with the payment provider, reduces the provider's
asynchronous status events to a single outcome per checkout reference and
settles the booking record accordingly.
"""
