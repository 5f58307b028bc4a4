"""Referral link generation, eligibility and click tracking."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from django.conf import settings  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore

from apps.bookings.domain.selection import ItemType
from apps.referrals.models import ReferralTracking

logger = logging.getLogger(__name__)

ITEM_PATHS = {
    ItemType.TRIP.value: "trip",
    ItemType.EVENT.value: "event",
    ItemType.HOTEL.value: "hotel",
    ItemType.ADVENTURE_PLACE.value: "adventure",
    ItemType.ATTRACTION.value: "attraction",
}

NOT_LOGGED_IN = "You must be logged in to use referrals."
NOT_A_HOST = "You must be a verified host to use the referral program."
VERIFICATION_PENDING = "Your host verification is pending. Referrals will be enabled once approved."
VERIFICATION_REJECTED = "Your host verification was rejected. Please resubmit to use referrals."


@dataclass(frozen=True)
class Eligibility:
    is_eligible: bool
    reason: Optional[str] = None


def slugify_email_name(email: str) -> str:
    """Public referral slug: the e-mail local part, lower-cased and dashed."""
    local_part = (email or "").split("@")[0].lower()
    return re.sub(r"[^a-z0-9]+", "-", local_part).strip("-")


def check_referral_eligibility(user) -> Eligibility:
    from apps.users.models import HostVerification

    if user is None or not getattr(user, "is_authenticated", False):
        return Eligibility(False, NOT_LOGGED_IN)

    verification = HostVerification.objects.filter(user=user).first()
    if verification is None:
        return Eligibility(False, NOT_A_HOST)
    if verification.status == HostVerification.Status.PENDING:
        return Eligibility(False, VERIFICATION_PENDING)
    if verification.status != HostVerification.Status.APPROVED:
        return Eligibility(False, VERIFICATION_REJECTED)
    return Eligibility(True)


def item_path(item_id, item_type: Optional[str], item_slug: Optional[str] = None) -> str:
    segment = ITEM_PATHS.get(ItemType.normalize(item_type or ""))
    if segment is None:
        return "/"
    return f"/{segment}/{item_slug or item_id}"


def generate_referral_link(user, item_id, item_type: Optional[str], item_slug: Optional[str] = None) -> str:
    """
    Shareable URL for an item

    Only verified hosts get ``?ref=<slug>``; everyone else gets the clean URL.
    """
    base_url = getattr(settings, "SITE_URL", "").rstrip("/")
    clean_url = f"{base_url}{item_path(item_id, item_type, item_slug)}"

    if user is None or not getattr(user, "is_authenticated", False) or not user.email:
        return clean_url
    if not check_referral_eligibility(user).is_eligible:
        return clean_url
    return f"{clean_url}?ref={slugify_email_name(user.email)}"


def resolve_referrer(ref_slug: str):
    """Find the account whose e-mail slug matches ``ref_slug``."""
    if not ref_slug:
        return None
    User = get_user_model()
    local_part_prefix = ref_slug.split("-")[0]
    candidates = User.objects.exclude(email="").filter(email__icontains=local_part_prefix).order_by("pk")
    for candidate in candidates.iterator():
        if slugify_email_name(candidate.email) == ref_slug:
            return candidate
    return None


def track_referral_click(
    ref_slug: str,
    item_id=None,
    item_type: Optional[str] = None,
    referred_user=None,
    referral_type: str = ReferralTracking.ReferralType.BOOKING,
) -> Optional[ReferralTracking]:
    """
    Record a click on a referral link

    Returns None for an unknown slug or when referrers click their own link.
    A repeat click by the same visitor on the same item reuses the pending row.
    """
    referrer = resolve_referrer(ref_slug)
    if referrer is None:
        logger.info(f"No referrer found for slug {ref_slug!r}")
        return None

    referred_user_id = getattr(referred_user, "pk", None) if referred_user is not None else None
    if referred_user_id is not None and referred_user_id == referrer.pk:
        return None

    item_type = ItemType.normalize(item_type) if item_type else ""
    with transaction.atomic():
        existing = None
        if referred_user_id is not None:
            existing = ReferralTracking.objects.filter(
                referrer=referrer,
                referred_user_id=referred_user_id,
                item_id=str(item_id or ""),
                item_type=item_type,
                referral_type=referral_type,
                status=ReferralTracking.Status.PENDING,
            ).order_by("created_at", "id").first()
        if existing is not None:
            return existing

        tracking = ReferralTracking.objects.create(
            referrer=referrer,
            referred_user_id=referred_user_id,
            referral_type=referral_type,
            item_id=str(item_id or ""),
            item_type=item_type,
        )
    logger.info(f"Tracked referral click {tracking.pk} for referrer {referrer.pk}")
    return tracking
