"""API tests for the work-order resource."""
from __future__ import annotations

from typing import Any, Dict
from unittest import mock

from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from accounts.models import User
from core.exceptions import WriteConflict

from .models import WorkOrder
from .serializers import WorkOrderSerializer
from .views import WorkOrderViewSet


class WorkOrderApiTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.creator = User.objects.create(first_name="Ada", last_name="Lovelace")
        self.assignee = User.objects.create(first_name="Dana", last_name="Scully")

    def _payload(self, **overrides: Any) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "createdById": self.creator.id,
            "createdAtTime": "2024-03-05T10:00:00Z",
            "completedAtTime": None,
            "assignedToId": self.assignee.id,
            "canceled": False,
            "active": False,
            "complete": False,
            "description": "Fix login bug",
            "stage": WorkOrder.UNASSIGNED,
        }
        payload.update(overrides)
        return payload

    def _create(self, **overrides: Any) -> Dict[str, Any]:
        response = self.client.post(reverse("workorder-list"), self._payload(**overrides), format="json")
        self.assertEqual(response.status_code, 201)
        return response.data

    def test_create_then_get_returns_posted_fields(self) -> None:
        payload = self._payload()
        response = self.client.post(reverse("workorder-list"), payload, format="json")
        self.assertEqual(response.status_code, 201)
        work_order_id = response.data["id"]
        self.assertTrue(response["Location"].endswith(f"/api/WorkOrder/{work_order_id}"))

        detail = self.client.get(reverse("workorder-detail", args=[work_order_id]))
        self.assertEqual(detail.status_code, 200)
        for key, value in payload.items():
            self.assertEqual(detail.data[key], value, key)
        self.assertEqual(detail.data["assignedTo"]["firstName"], "Dana")
        self.assertEqual(detail.data["createdBy"]["lastName"], "Lovelace")

    def test_minimal_card_gets_default_lifecycle_flags(self) -> None:
        response = self.client.post(
            reverse("workorder-list"),
            {"description": "Test card", "stage": 0, "createdById": self.creator.id},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertIsNotNone(response.data["id"])

        detail = self.client.get(reverse("workorder-detail", args=[response.data["id"]]))
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(detail.data["stage"], 0)
        self.assertFalse(detail.data["complete"])
        self.assertFalse(detail.data["active"])
        self.assertFalse(detail.data["canceled"])
        self.assertIsNone(detail.data["assignedTo"])
        self.assertIsNotNone(detail.data["createdAtTime"])

    def test_create_ignores_client_supplied_id(self) -> None:
        created = self._create(id=999)
        self.assertNotEqual(created["id"], 999)
        self.assertFalse(WorkOrder.objects.filter(pk=999).exists())

    def test_list_returns_every_row(self) -> None:
        self._create(description="Fix login bug")
        self._create(description="Update docs", assignedToId=None)

        response = self.client.get(reverse("workorder-list"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["description"] for item in response.data], ["Fix login bug", "Update docs"])
        self.assertIsNone(response.data[1]["assignedTo"])

    def test_get_missing_returns_not_found(self) -> None:
        response = self.client.get(reverse("workorder-detail", args=[4242]))
        self.assertEqual(response.status_code, 404)

    def test_replace_overwrites_every_field(self) -> None:
        created = self._create()
        body = dict(created, description="Fix login bug on Safari", assignedToId=None, stage=3, active=True)

        response = self.client.put(reverse("workorder-detail", args=[created["id"]]), body, format="json")
        self.assertEqual(response.status_code, 204)
        self.assertFalse(response.content)

        work_order = WorkOrder.objects.get(pk=created["id"])
        self.assertEqual(work_order.description, "Fix login bug on Safari")
        self.assertIsNone(work_order.assigned_to)
        self.assertEqual(work_order.stage, 3)
        self.assertTrue(work_order.active)

    def test_replace_resets_omitted_fields(self) -> None:
        work_order = WorkOrder.objects.create(
            created_by=self.creator,
            assigned_to=self.assignee,
            stage=WorkOrder.COMPLETED,
            complete=True,
            active=True,
            canceled=True,
            description="x",
        )
        body = {"id": work_order.id, "createdById": self.creator.id, "description": "y"}

        response = self.client.put(reverse("workorder-detail", args=[work_order.id]), body, format="json")
        self.assertEqual(response.status_code, 204)

        work_order.refresh_from_db()
        self.assertEqual(work_order.description, "y")
        self.assertEqual(work_order.stage, WorkOrder.BACKLOG)
        self.assertIsNone(work_order.assigned_to)
        self.assertIsNone(work_order.completed_at_time)
        self.assertFalse(work_order.complete)
        self.assertFalse(work_order.active)
        self.assertFalse(work_order.canceled)
        self.assertIsNotNone(work_order.created_at_time)

    def test_replace_with_mismatched_id_changes_nothing(self) -> None:
        created = self._create()
        url = reverse("workorder-detail", args=[created["id"]])
        before = self.client.get(url).data

        body = dict(created, id=created["id"] + 1, description="Should not be stored")
        response = self.client.put(url, body, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.client.get(url).data, before)

    def test_replace_without_body_id_is_a_bad_request(self) -> None:
        created = self._create()
        body = {key: value for key, value in created.items() if key != "id"}
        response = self.client.put(reverse("workorder-detail", args=[created["id"]]), body, format="json")
        self.assertEqual(response.status_code, 400)

    def test_replace_missing_row_returns_not_found(self) -> None:
        body = self._payload(id=4242)
        response = self.client.put(reverse("workorder-detail", args=[4242]), body, format="json")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(WorkOrder.objects.count(), 0)

    def test_replace_after_concurrent_delete_returns_not_found(self) -> None:
        created = self._create()
        stale = WorkOrder.objects.get(pk=created["id"])
        WorkOrder.objects.filter(pk=created["id"]).delete()

        with mock.patch.object(WorkOrderViewSet, "get_object", return_value=stale):
            response = self.client.put(
                reverse("workorder-detail", args=[created["id"]]), created, format="json"
            )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(WorkOrder.objects.count(), 0)

    def test_write_conflict_on_existing_row_propagates(self) -> None:
        created = self._create()
        conflict = WriteConflict("WorkOrder", created["id"])

        with mock.patch.object(WorkOrderSerializer, "save", side_effect=conflict):
            with self.assertRaises(WriteConflict):
                self.client.put(reverse("workorder-detail", args=[created["id"]]), created, format="json")

    def test_patch_is_not_offered(self) -> None:
        created = self._create()
        response = self.client.patch(
            reverse("workorder-detail", args=[created["id"]]), {"stage": 4}, format="json"
        )
        self.assertEqual(response.status_code, 405)

    def test_delete_twice(self) -> None:
        created = self._create()
        url = reverse("workorder-detail", args=[created["id"]])

        first = self.client.delete(url)
        self.assertEqual(first.status_code, 204)
        second = self.client.delete(url)
        self.assertEqual(second.status_code, 404)

    def test_delete_missing_changes_nothing(self) -> None:
        self._create()
        response = self.client.delete(reverse("workorder-detail", args=[4242]))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(WorkOrder.objects.count(), 1)

    def test_unknown_stage_is_stored_as_is(self) -> None:
        with self.assertLogs("workorders.views", level="WARNING"):
            created = self._create(stage=9)
        self.assertEqual(WorkOrder.objects.get(pk=created["id"]).stage, 9)


class WorkOrderMoveTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.creator = User.objects.create(first_name="Ada", last_name="Lovelace")
        self.work_order = WorkOrder.objects.create(
            created_by=self.creator,
            description="Update docs",
            stage=WorkOrder.UNASSIGNED,
            canceled=True,
        )

    def test_move_derives_flags_for_every_stage(self) -> None:
        url = reverse("workorder-move", args=[self.work_order.id])
        before = self.client.get(reverse("workorder-detail", args=[self.work_order.id])).data

        for stage in range(5):
            with self.subTest(stage=stage):
                response = self.client.post(url, {"stage": stage}, format="json")
                self.assertEqual(response.status_code, 200)
                self.assertEqual(response.data["stage"], stage)
                self.assertEqual(response.data["complete"], stage == 4)
                self.assertEqual(response.data["active"], stage in {2, 3})
                self.assertFalse(response.data["canceled"])
                for key in ("id", "description", "createdById", "createdAtTime", "completedAtTime", "assignedToId"):
                    self.assertEqual(response.data[key], before[key], key)

    def test_move_persists_the_transition(self) -> None:
        self.client.post(
            reverse("workorder-move", args=[self.work_order.id]), {"stage": 3}, format="json"
        )
        self.work_order.refresh_from_db()
        self.assertEqual(self.work_order.stage, WorkOrder.IN_REVIEW)
        self.assertTrue(self.work_order.active)
        self.assertFalse(self.work_order.complete)
        self.assertFalse(self.work_order.canceled)

    def test_move_rejects_unknown_stage(self) -> None:
        response = self.client.post(
            reverse("workorder-move", args=[self.work_order.id]), {"stage": 7}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.work_order.refresh_from_db()
        self.assertEqual(self.work_order.stage, WorkOrder.UNASSIGNED)

    def test_move_missing_work_order_returns_not_found(self) -> None:
        response = self.client.post(reverse("workorder-move", args=[4242]), {"stage": 2}, format="json")
        self.assertEqual(response.status_code, 404)


class WorkOrderModelTests(TestCase):
    def test_apply_stage_leaves_other_fields_alone(self) -> None:
        creator = User.objects.create(first_name="Ada", last_name="Lovelace")
        work_order = WorkOrder(created_by=creator, description="Ship it", stage=WorkOrder.IN_REVIEW, active=True)

        work_order.apply_stage(WorkOrder.COMPLETED)

        self.assertEqual(work_order.stage, WorkOrder.COMPLETED)
        self.assertTrue(work_order.complete)
        self.assertFalse(work_order.active)
        self.assertIsNone(work_order.completed_at_time)
        self.assertEqual(work_order.description, "Ship it")
