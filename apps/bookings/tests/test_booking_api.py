"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.listings.models import Listing
from apps.payments.models import Payment
from apps.payments.provider import PaymentProviderError
from apps.users.models import UserProfile

User = get_user_model()


class BookingAPITests(APITestCase):
    """Covers submission, listing, payment retry and cancellation."""

    def setUp(self) -> None:
        cache.clear()
        self.host = User.objects.create_user(
            username="host",
            email="host@example.com",
            password="HostPass123",
        )
        self.traveller = User.objects.create_user(
            username="traveller",
            email="traveller@example.com",
            password="TravellerPass123",
        )
        UserProfile.objects.create(user=self.traveller, name="Otieno", phone="+254 700 000 002")
        self.listing = Listing.objects.create(
            host=self.host,
            item_type="adventure_place",
            name="Hell's Gate Camp",
            price_adult=Decimal("1000.00"),
            price_child=Decimal("400.00"),
            facilities=[{"name": "Campsite", "price": "1500", "capacity": 4}],
            activities=[{"name": "Cycling", "price": "600"}],
        )
        self.list_url = reverse("booking-list")
        self.visit = timezone.localdate() + timedelta(days=5)

    def _payload(self, **overrides) -> dict:
        payload = {
            "listing": self.listing.pk,
            "visit_date": str(self.visit),
            "adults": 2,
            "children": 1,
            "facilities": [{
                "name": "Campsite",
                "start_date": str(self.visit),
                "end_date": str(self.visit + timedelta(days=2)),
            }],
            "activities": [{"name": "Cycling", "people": 2}],
            "guest": {"name": "Amina", "email": "amina@example.com", "phone": "+254700000001"},
            "payment": {"method": "mobile_money", "phone": "+254700000001"},
        }
        payload.update(overrides)
        return payload

    def test_guest_can_submit_booking(self) -> None:
        response = self.client.post(self.list_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        booking = Booking.objects.get()
        # 2 x 1000 + 1 x 400 + 2 days x 1500 + 2 x 600
        self.assertEqual(booking.total_amount, Decimal("6600.00"))
        self.assertTrue(booking.is_guest_booking)
        self.assertEqual(booking.status, Booking.Status.PENDING)
        self.assertEqual(response.data["booking"]["booking_code"], booking.booking_code)
        self.assertEqual(response.data["payment"]["outcome"], "processing")
        self.assertTrue(Payment.objects.filter(booking=booking).exists())

    def test_signed_in_user_books_under_account(self) -> None:
        self.client.force_authenticate(self.traveller)
        payload = self._payload()
        del payload["guest"]

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        booking = Booking.objects.get()
        self.assertEqual(booking.user, self.traveller)
        self.assertFalse(booking.is_guest_booking)
        self.assertEqual(booking.guest_name, "Otieno")
        self.assertEqual(booking.guest_phone, "+254700000002")

    def test_invalid_draft_is_rejected(self) -> None:
        payload = self._payload(facilities=[{"name": "Campsite"}])

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertIn("Campsite", " ".join(response.data["errors"]))
        self.assertFalse(Booking.objects.exists())

    def test_visit_date_is_checked_against_local_date(self) -> None:
        local_today = self.visit + timedelta(days=1)

        with mock.patch("apps.bookings.serializers.timezone.localdate", return_value=local_today):
            response = self.client.post(self.list_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertFalse(Booking.objects.exists())

    def test_unknown_add_on_is_rejected(self) -> None:
        payload = self._payload(activities=[{"name": "Skydiving", "people": 1}])

        response = self.client.post(self.list_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertFalse(Booking.objects.exists())

    def test_provider_outage_keeps_booking_for_retry(self) -> None:
        with mock.patch(
            "apps.payments.provider.PaymentProviderClient.initiate",
            side_effect=PaymentProviderError("timeout"),
        ):
            response = self.client.post(self.list_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY, response.data)
        booking = Booking.objects.get()
        self.assertEqual(booking.status, Booking.Status.FAILED)
        self.assertTrue(response.data["booking"]["can_retry_payment"])

        retry_url = reverse("booking-retry-payment", kwargs={"booking_code": booking.booking_code})
        retry = self.client.post(retry_url, {"method": "cash"}, format="json")

        self.assertEqual(retry.status_code, status.HTTP_200_OK, retry.data)
        self.assertEqual(retry.data["booking"]["status"], Booking.Status.PENDING)
        self.assertTrue(retry.data["payment"]["reference"].startswith("cash_"))

    def test_retry_of_pending_booking_conflicts(self) -> None:
        self.client.post(self.list_url, self._payload(), format="json")
        booking = Booking.objects.get()

        url = reverse("booking-retry-payment", kwargs={"booking_code": booking.booking_code})
        response = self.client.post(url, {"method": "cash"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)

    def test_list_requires_authentication_and_shows_own_bookings(self) -> None:
        self.assertEqual(self.client.get(self.list_url).status_code, status.HTTP_401_UNAUTHORIZED)

        self.client.force_authenticate(self.traveller)
        payload = self._payload()
        del payload["guest"]
        self.client.post(self.list_url, payload, format="json")

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["item_name"], "Hell's Gate Camp")

    def test_account_booking_hidden_from_other_users(self) -> None:
        self.client.force_authenticate(self.traveller)
        payload = self._payload()
        del payload["guest"]
        self.client.post(self.list_url, payload, format="json")
        booking = Booking.objects.get()
        url = reverse("booking-detail", kwargs={"booking_code": booking.booking_code})

        self.client.force_authenticate(self.host)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.traveller)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_200_OK)

    def test_cancel_pending_booking(self) -> None:
        self.client.post(self.list_url, self._payload(), format="json")
        booking = Booking.objects.get()
        url = reverse("booking-cancel", kwargs={"booking_code": booking.booking_code})

        response = self.client.post(url, {"reason": "Weather"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Booking.Status.CANCELLED)

        again = self.client.post(url, {}, format="json")
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)
