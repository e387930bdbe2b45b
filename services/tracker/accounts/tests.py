"""API tests for the user resource."""
from __future__ import annotations

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from workorders.models import WorkOrder

from .models import User


class UserApiTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()

    def test_create_user(self) -> None:
        payload = {"firstName": "Casey", "lastName": "Agent"}
        response = self.client.post(reverse("user-list"), payload, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["firstName"], "Casey")
        self.assertIn(f"/api/User/{response.data['id']}", response["Location"])

        response = self.client.get(reverse("user-list"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)

    def test_names_are_required(self) -> None:
        response = self.client.post(reverse("user-list"), {"firstName": "Casey"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("lastName", response.data)

    def test_replace_user(self) -> None:
        user = User.objects.create(first_name="Casey", last_name="Agent")
        url = reverse("user-detail", args=[user.id])

        response = self.client.put(url, {"id": user.id, "firstName": "Casey", "lastName": "Jones"}, format="json")
        self.assertEqual(response.status_code, 204)
        user.refresh_from_db()
        self.assertEqual(user.last_name, "Jones")

    def test_replace_with_mismatched_id_is_rejected(self) -> None:
        user = User.objects.create(first_name="Casey", last_name="Agent")
        url = reverse("user-detail", args=[user.id])

        response = self.client.put(url, {"id": user.id + 1, "firstName": "X", "lastName": "Y"}, format="json")
        self.assertEqual(response.status_code, 400)
        user.refresh_from_db()
        self.assertEqual(user.full_name, "Casey Agent")

    def test_delete_twice(self) -> None:
        user = User.objects.create(first_name="Casey", last_name="Agent")
        url = reverse("user-detail", args=[user.id])

        self.assertEqual(self.client.delete(url).status_code, 204)
        self.assertEqual(self.client.delete(url).status_code, 404)

    def test_deleting_a_creator_is_blocked(self) -> None:
        creator = User.objects.create(first_name="Ada", last_name="Lovelace")
        WorkOrder.objects.create(created_by=creator, description="Fix login bug")

        response = self.client.delete(reverse("user-detail", args=[creator.id]))
        self.assertEqual(response.status_code, 409)
        self.assertIn("detail", response.data)
        self.assertTrue(User.objects.filter(pk=creator.id).exists())

    def test_deleting_an_assignee_clears_the_assignment(self) -> None:
        creator = User.objects.create(first_name="Ada", last_name="Lovelace")
        assignee = User.objects.create(first_name="Dana", last_name="Scully")
        work_order = WorkOrder.objects.create(
            created_by=creator, assigned_to=assignee, description="Update docs"
        )

        response = self.client.delete(reverse("user-detail", args=[assignee.id]))
        self.assertEqual(response.status_code, 204)
        work_order.refresh_from_db()
        self.assertIsNone(work_order.assigned_to)
