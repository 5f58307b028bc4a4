"""Utilities for caching a user's booking list."""

from __future__ import annotations

from typing import Callable, List

from django.conf import settings
from django.core.cache import cache

CACHE_PREFIX = "bookings:user"


def _build_cache_key(user_id) -> str:
    return f"{CACHE_PREFIX}:{user_id}"


def get_user_bookings(user_id, builder: Callable[[], List[dict]]) -> List[dict]:
    """Return the cached serialized bookings for ``user_id``, building them on a miss."""
    if user_id is None:
        return builder()

    key = _build_cache_key(user_id)
    cached: List[dict] | None = cache.get(key)
    if cached is not None:
        return cached

    result = builder()
    timeout = getattr(settings, "USER_BOOKINGS_CACHE_TIMEOUT", 300)
    cache.set(key, result, timeout)
    return result


def invalidate_user_bookings(user_id) -> None:
    if user_id is not None:
        cache.delete(_build_cache_key(user_id))


__all__ = [
    "get_user_bookings",
    "invalidate_user_bookings",
]
