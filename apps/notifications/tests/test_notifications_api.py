"""Integration tests for in-app notification endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.notifications.models import Notification

User = get_user_model()


class NotificationAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(username="host", email="host@example.com", password="pass")
        self.other = User.objects.create_user(username="other", email="other@example.com", password="pass")
        self.notification = Notification.objects.create(user=self.user, title="New booking #AB12", message="...")
        Notification.objects.create(user=self.other, title="Someone else's", message="...")

    def test_requires_authentication(self) -> None:
        response = self.client.get(reverse("notification-list"))
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    def test_lists_only_own_notifications_and_marks_read(self) -> None:
        self.client.force_authenticate(self.user)

        response = self.client.get(reverse("notification-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([n["title"] for n in response.data], ["New booking #AB12"])

        url = reverse("notification-mark-read", kwargs={"pk": self.notification.pk})
        self.assertEqual(self.client.post(url).status_code, status.HTTP_200_OK)
        self.notification.refresh_from_db()
        self.assertTrue(self.notification.is_read)

    def test_cannot_touch_other_users_notifications(self) -> None:
        foreign = Notification.objects.get(user=self.other)
        self.client.force_authenticate(self.user)

        url = reverse("notification-mark-read", kwargs={"pk": foreign.pk})
        self.assertEqual(self.client.post(url).status_code, status.HTTP_404_NOT_FOUND)
