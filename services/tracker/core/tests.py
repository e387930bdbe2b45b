"""Tests for the shared API plumbing."""
from __future__ import annotations

from django.conf import settings
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIClient

from accounts.models import User

from .viewsets import ids_match


class HealthTests(TestCase):
    def test_health(self) -> None:
        response = APIClient().get(reverse("tracker-health"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["status"], "ok")


class CapabilityPermissionTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.user = User.objects.create(first_name="Casey", last_name="Agent")

    def test_everything_is_allowed_by_default(self) -> None:
        response = self.client.delete(reverse("user-detail", args=[self.user.id]))
        self.assertEqual(response.status_code, 204)

    @override_settings(TRACKER_DENIED_CAPABILITIES=frozenset({"user.destroy"}))
    def test_denied_capability_is_refused_before_storage(self) -> None:
        response = self.client.delete(reverse("user-detail", args=[self.user.id]))
        self.assertEqual(response.status_code, 403)
        self.assertTrue(User.objects.filter(pk=self.user.id).exists())

        listing = self.client.get(reverse("user-list"))
        self.assertEqual(listing.status_code, 200)

    @override_settings(TRACKER_DENIED_CAPABILITIES=frozenset({"workorder.move"}))
    def test_move_has_its_own_capability(self) -> None:
        response = self.client.post(reverse("workorder-move", args=[1]), {"stage": 2}, format="json")
        self.assertEqual(response.status_code, 403)


class IdsMatchTests(SimpleTestCase):
    def test_ids_match(self) -> None:
        self.assertTrue(ids_match(5, "5"))
        self.assertTrue(ids_match("5", 5))
        self.assertFalse(ids_match(6, "5"))
        self.assertFalse(ids_match(None, "5"))
        self.assertFalse(ids_match(True, "1"))
        self.assertFalse(ids_match("five", "5"))


class LoggingConfigTests(SimpleTestCase):
    def test_every_formatter_and_handler_is_used(self) -> None:
        config = settings.LOGGING
        handlers = config["handlers"]
        used_formatters = {handler["formatter"] for handler in handlers.values()}
        self.assertEqual(used_formatters, set(config["formatters"]))

        used_handlers = set(config["root"]["handlers"])
        for logger_config in config["loggers"].values():
            used_handlers.update(logger_config["handlers"])
        self.assertEqual(used_handlers, set(handlers))
