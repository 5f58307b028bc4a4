"""URL routing for the referral program."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import ReferralLinkView, ReferralStatsView, TrackClickView, WithdrawView

urlpatterns = [
    path("stats/", ReferralStatsView.as_view(), name="referral-stats"),
    path("withdraw/", WithdrawView.as_view(), name="referral-withdraw"),
    path("link/", ReferralLinkView.as_view(), name="referral-link"),
    path("track/", TrackClickView.as_view(), name="referral-track"),
]
