import pytest
from django.core.cache import cache

from apps.bookings.cache import get_user_bookings, invalidate_user_bookings
from apps.bookings.domain.events import BookingCancelled
from apps.bookings.handlers import invalidate_bookings_cache


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


def test_builder_runs_once_until_invalidated():
    calls = []

    def build():
        calls.append(1)
        return [{"booking_code": "AB12CD34"}]

    assert get_user_bookings(7, build) == [{"booking_code": "AB12CD34"}]
    assert get_user_bookings(7, build) == [{"booking_code": "AB12CD34"}]
    assert len(calls) == 1

    invalidate_user_bookings(7)
    get_user_bookings(7, build)
    assert len(calls) == 2


def test_anonymous_lists_are_never_cached():
    calls = []
    get_user_bookings(None, lambda: calls.append(1) or [])
    get_user_bookings(None, lambda: calls.append(1) or [])
    assert len(calls) == 2


def test_status_events_drop_the_owner_list():
    get_user_bookings(3, lambda: ["stale"])

    invalidate_bookings_cache(BookingCancelled(aggregate_id=1, booking_id=1, reason="", old_status="pending", user_id=3))

    assert get_user_bookings(3, lambda: ["fresh"]) == ["fresh"]
