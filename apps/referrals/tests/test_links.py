import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser

from apps.referrals.links import (
    NOT_A_HOST,
    NOT_LOGGED_IN,
    VERIFICATION_PENDING,
    VERIFICATION_REJECTED,
    check_referral_eligibility,
    generate_referral_link,
    item_path,
    resolve_referrer,
    slugify_email_name,
    track_referral_click,
)
from apps.referrals.models import ReferralTracking
from apps.users.models import HostVerification

User = get_user_model()


@pytest.fixture
def host(db):
    user = User.objects.create_user(username="jane", email="Jane.Doe@example.com", password="pass")
    HostVerification.objects.create(user=user, status=HostVerification.Status.APPROVED)
    return user


def test_slug_from_email():
    assert slugify_email_name("Jane.Doe+trips@example.com") == "jane-doe-trips"
    assert slugify_email_name("") == ""


def test_item_paths():
    assert item_path(42, "adventure_place") == "/adventure/42"
    assert item_path(42, "adventure") == "/adventure/42"
    assert item_path(7, "event", "jazz-night") == "/event/jazz-night"
    assert item_path(7, "boat") == "/"


@pytest.mark.django_db
def test_eligibility_reasons():
    assert check_referral_eligibility(AnonymousUser()).reason == NOT_LOGGED_IN

    user = User.objects.create_user(username="x", email="x@example.com", password="pass")
    assert check_referral_eligibility(user).reason == NOT_A_HOST

    verification = HostVerification.objects.create(user=user)
    assert check_referral_eligibility(user).reason == VERIFICATION_PENDING

    verification.reject("Blurry ID")
    assert check_referral_eligibility(user).reason == VERIFICATION_REJECTED

    verification.approve()
    assert check_referral_eligibility(user).is_eligible


@pytest.mark.django_db
def test_only_verified_hosts_get_tracked_links(host):
    assert generate_referral_link(host, 42, "trip") == "https://bookings.test/trip/42?ref=jane-doe"

    guest = User.objects.create_user(username="guest", email="guest@example.com", password="pass")
    assert generate_referral_link(guest, 42, "trip") == "https://bookings.test/trip/42"
    assert generate_referral_link(None, 42, "trip") == "https://bookings.test/trip/42"


@pytest.mark.django_db
def test_resolve_referrer(host):
    User.objects.create_user(username="janet", email="jane.doe.smith@example.com", password="pass")

    assert resolve_referrer("jane-doe") == host
    assert resolve_referrer("nobody") is None
    assert resolve_referrer("") is None


@pytest.mark.django_db
def test_track_click(host):
    visitor = User.objects.create_user(username="visitor", email="visitor@example.com", password="pass")

    first = track_referral_click("jane-doe", item_id=42, item_type="adventure", referred_user=visitor)
    again = track_referral_click("jane-doe", item_id=42, item_type="adventure_place", referred_user=visitor)

    assert first.pk == again.pk
    assert first.item_type == "adventure_place"
    assert first.status == ReferralTracking.Status.PENDING

    anonymous = [track_referral_click("jane-doe", item_id=42, item_type="trip") for _ in range(2)]
    assert anonymous[0].pk != anonymous[1].pk


@pytest.mark.django_db
def test_self_referral_and_unknown_slug_are_not_tracked(host):
    assert track_referral_click("jane-doe", item_id=1, item_type="trip", referred_user=host) is None
    assert track_referral_click("ghost", item_id=1, item_type="trip") is None
    assert not ReferralTracking.objects.exists()
