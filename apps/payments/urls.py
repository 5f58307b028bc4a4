"""URL routing for payments."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import PaymentStatusView, PaymentWebhookView

urlpatterns = [
    path("webhook/", PaymentWebhookView.as_view(), name="payment-webhook"),
    path("<str:reference>/", PaymentStatusView.as_view(), name="payment-status"),
]
