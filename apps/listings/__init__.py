"""Listings app package.

Trips, events, hotels, attractions and adventure places that guests can
book. A listing only describes what is offered; the booking wizard reads
it through ``Listing.to_bookable_item``.
"""
