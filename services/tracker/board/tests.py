"""Tests for the board client."""
from __future__ import annotations

import copy
import threading
from json import dumps
from typing import Any, Dict, List, Optional
from unittest import mock
from urllib.parse import urlsplit

import requests
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework.test import APIClient

from accounts.models import User
from workorders.models import WorkOrder

from . import views
from .api import NetworkFailure, WorkOrderApi
from .serializers import initials, short_date
from .stages import STAGES, apply_stage_move
from .state import CONFIRM_FIRST, OPTIMISTIC, BoardState, matches_query


def _work_order(work_order_id: int, description: str, stage: int = 1, assignee: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "id": work_order_id,
        "createdById": 1,
        "createdAtTime": "2024-03-05T10:00:00Z",
        "completedAtTime": None,
        "assignedToId": assignee["id"] if assignee else None,
        "canceled": False,
        "active": False,
        "complete": False,
        "description": description,
        "stage": stage,
        "assignedTo": assignee,
        "createdBy": {"id": 1, "firstName": "Ada", "lastName": "Lovelace"},
    }


DANA = {"id": 2, "firstName": "Dana", "lastName": "Scully"}


def _mock_response(status_code: int = 200, payload: Any = None, reason: str = "OK") -> mock.Mock:
    response = mock.Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = reason
    response.text = dumps(payload)
    response.json.return_value = payload
    return response


class StageMoveTests(SimpleTestCase):
    def test_every_stage_derives_its_flags(self) -> None:
        original = _work_order(7, "Fix login bug", stage=1, assignee=DANA)
        original["canceled"] = True

        for stage in STAGES:
            with self.subTest(stage=stage.name):
                moved = apply_stage_move(original, stage.id)
                self.assertEqual(moved["stage"], stage.id)
                self.assertEqual(moved["complete"], stage.id == 4)
                self.assertEqual(moved["active"], stage.id in {2, 3})
                self.assertFalse(moved["canceled"])
                for key in original:
                    if key not in {"stage", "complete", "active", "canceled"}:
                        self.assertEqual(moved[key], original[key], key)

    def test_move_does_not_touch_the_original(self) -> None:
        original = _work_order(7, "Fix login bug", stage=1)
        apply_stage_move(original, 4)
        self.assertEqual(original["stage"], 1)
        self.assertFalse(original["complete"])


class BoardStateTests(SimpleTestCase):
    def setUp(self) -> None:
        self.api = mock.Mock(spec=WorkOrderApi)
        self.api.list_work_orders.return_value = [
            _work_order(1, "Fix login bug", stage=1),
            _work_order(2, "Update docs", stage=3, assignee=DANA),
        ]
        self.board = BoardState(self.api, creator_id=1)
        self.assertTrue(self.board.load())

    def test_load_groups_into_fixed_columns(self) -> None:
        columns = self.board.columns()
        self.assertEqual([column["stage"].name for column in columns], [stage.name for stage in STAGES])
        self.assertEqual([wo["id"] for wo in columns[1]["items"]], [1])
        self.assertEqual([wo["id"] for wo in columns[3]["items"]], [2])
        self.api.list_work_orders.assert_called_once_with()

    def test_load_failure_reports_the_status(self) -> None:
        self.api.list_work_orders.side_effect = NetworkFailure("500 Internal Server Error", 500)
        board = BoardState(self.api)
        self.assertFalse(board.load())
        self.assertFalse(board.loaded)
        self.assertEqual(board.error, "Failed to fetch work orders: 500 Internal Server Error")

    def test_move_applies_locally_then_sends_full_entity(self) -> None:
        def _assert_already_moved(work_order: Dict[str, Any]) -> None:
            self.assertEqual(self.board.find(1)["stage"], 3)
            self.assertEqual(work_order["stage"], 3)
            self.assertTrue(work_order["active"])
            self.assertEqual(work_order["description"], "Fix login bug")

        self.api.replace_work_order.side_effect = _assert_already_moved
        self.board.start_drag(1)

        self.assertTrue(self.board.move(1, 3))
        self.assertIsNone(self.board.dragging)
        self.assertIsNone(self.board.error)
        self.api.replace_work_order.assert_called_once()

    def test_failed_move_reverts_and_reports(self) -> None:
        before = copy.deepcopy(self.board.find(1))
        self.api.replace_work_order.side_effect = NetworkFailure("503 Service Unavailable", 503)

        self.assertFalse(self.board.move(1, 3))
        self.assertEqual(self.board.find(1)["stage"], 1)
        self.assertEqual(self.board.find(1), before)
        self.assertEqual(self.board.error, "Failed to update work order")
        self.api.replace_work_order.assert_called_once()

    def test_noop_moves_skip_the_network(self) -> None:
        self.board.start_drag(1)
        self.assertFalse(self.board.move(1, 1))
        self.assertIsNone(self.board.dragging)
        self.assertFalse(self.board.move(99, 2))
        self.assertFalse(self.board.move(1, 8))
        self.api.replace_work_order.assert_not_called()

    def test_confirm_first_move_waits_for_the_server(self) -> None:
        board = BoardState(self.api, policies={"move": CONFIRM_FIRST})
        board.load()

        def _assert_not_yet_moved(_: Dict[str, Any]) -> None:
            self.assertEqual(board.find(1)["stage"], 1)

        self.api.replace_work_order.side_effect = _assert_not_yet_moved
        self.assertTrue(board.move(1, 4))
        self.assertEqual(board.find(1)["stage"], 4)
        self.assertTrue(board.find(1)["complete"])

    def test_add_card_caches_the_server_copy(self) -> None:
        self.api.create_work_order.return_value = _work_order(30, "New card", stage=0)

        created = self.board.add_card(0, "New card")

        self.assertEqual(created["id"], 30)
        self.assertEqual(self.board.find(30), created)
        sent = self.api.create_work_order.call_args[0][0]
        self.assertEqual(sent["description"], "New card")
        self.assertEqual(sent["stage"], 0)
        self.assertEqual(sent["createdById"], 1)
        self.assertFalse(sent["complete"] or sent["active"] or sent["canceled"])
        self.assertNotIn("id", sent)

    def test_add_card_failure_adds_nothing(self) -> None:
        self.api.create_work_order.side_effect = NetworkFailure("500 Internal Server Error", 500)

        self.assertIsNone(self.board.add_card(0, "New card"))
        self.assertEqual(len(self.board.work_orders), 2)
        self.assertEqual(self.board.error, "Failed to create work order")

    def test_blank_card_is_not_sent(self) -> None:
        self.assertIsNone(self.board.add_card(0, "   "))
        self.api.create_work_order.assert_not_called()

    def test_delete_removes_only_after_confirmation(self) -> None:
        def _assert_still_cached(work_order_id: int) -> None:
            self.assertIsNotNone(self.board.find(work_order_id))

        self.api.delete_work_order.side_effect = _assert_still_cached
        self.assertTrue(self.board.delete(2))
        self.assertIsNone(self.board.find(2))

    def test_failed_delete_keeps_the_card(self) -> None:
        self.api.delete_work_order.side_effect = NetworkFailure("404 Not Found", 404)

        self.assertFalse(self.board.delete(2))
        self.assertIsNotNone(self.board.find(2))
        self.assertEqual(self.board.error, "Failed to delete work order")

    def test_optimistic_delete_restores_position_on_failure(self) -> None:
        board = BoardState(self.api, policies={"delete": OPTIMISTIC})
        board.load()

        def _assert_already_gone(work_order_id: int) -> None:
            self.assertIsNone(board.find(work_order_id))
            raise NetworkFailure("timed out")

        self.api.delete_work_order.side_effect = _assert_already_gone
        self.assertFalse(board.delete(1))
        self.assertEqual([wo["id"] for wo in board.work_orders], [1, 2])

    def test_unsupported_policy_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            BoardState(self.api, policies={"create": OPTIMISTIC})

    def test_filter_matches_description_and_assignee(self) -> None:
        self.assertEqual([wo["id"] for wo in self.board.filtered("log")], [1])
        self.assertEqual([wo["id"] for wo in self.board.filtered("dana")], [2])
        self.assertEqual([wo["id"] for wo in self.board.filtered("SCULLY")], [2])
        self.assertEqual([wo["id"] for wo in self.board.filtered("")], [1, 2])
        self.api.list_work_orders.assert_called_once_with()

    def test_unknown_stages_are_logged_and_left_out(self) -> None:
        self.api.list_work_orders.return_value = [
            _work_order(1, "Fix login bug", stage=1),
            _work_order(2, "Lost card", stage=9),
        ]
        board = BoardState(self.api)
        with self.assertLogs("board.state", level="WARNING"):
            board.load()

        self.assertEqual(board.anomalous_stages(), [9])
        self.assertEqual(sum(len(column["items"]) for column in board.columns()), 1)


class MatchesQueryTests(SimpleTestCase):
    def test_unassigned_cards_match_on_description_only(self) -> None:
        work_order = _work_order(1, "Fix login bug")
        self.assertTrue(matches_query(work_order, "  LOGIN "))
        self.assertFalse(matches_query(work_order, "dana"))


class WorkOrderApiTests(SimpleTestCase):
    def setUp(self) -> None:
        self.session = mock.Mock()
        self.api = WorkOrderApi("http://backend.test/", timeout=2.5, session=self.session)

    def test_list_uses_the_configured_base_url_and_timeout(self) -> None:
        self.session.request.return_value = _mock_response(payload=[_work_order(1, "Fix login bug")])

        work_orders = self.api.list_work_orders()

        self.assertEqual(work_orders[0]["id"], 1)
        self.session.request.assert_called_once_with(
            "GET", "http://backend.test/api/WorkOrder", json=None, timeout=2.5
        )

    def test_replace_puts_to_the_detail_url(self) -> None:
        self.session.request.return_value = _mock_response(status_code=204)
        work_order = _work_order(5, "Fix login bug")

        self.api.replace_work_order(work_order)

        self.session.request.assert_called_once_with(
            "PUT", "http://backend.test/api/WorkOrder/5", json=work_order, timeout=2.5
        )

    def test_error_status_is_a_network_failure(self) -> None:
        self.session.request.return_value = _mock_response(
            status_code=500, payload={"detail": "boom"}, reason="Internal Server Error"
        )
        with self.assertRaises(NetworkFailure) as ctx:
            self.api.list_work_orders()
        self.assertEqual(str(ctx.exception), "500 Internal Server Error")
        self.assertEqual(ctx.exception.status_code, 500)

    def test_timeout_is_a_network_failure(self) -> None:
        self.session.request.side_effect = requests.Timeout("read timed out")
        with self.assertRaises(NetworkFailure):
            self.api.delete_work_order(5)

    def test_non_json_body_is_a_network_failure(self) -> None:
        response = _mock_response()
        response.json.side_effect = ValueError("no json")
        self.session.request.return_value = response
        with self.assertRaises(NetworkFailure):
            self.api.create_work_order({"description": "x"})


class CardPresentationTests(SimpleTestCase):
    def test_initials(self) -> None:
        self.assertEqual(initials(DANA), "DS")
        self.assertEqual(initials({"firstName": "Mary", "lastName": "Ann Smith"}), "MA")
        self.assertEqual(initials(None), "?")
        self.assertEqual(initials({"firstName": "", "lastName": ""}), "?")

    def test_short_date(self) -> None:
        self.assertEqual(short_date("2024-03-05T10:00:00Z"), "Mar 5")
        self.assertEqual(short_date(None), "")
        self.assertEqual(short_date("not a date"), "")


@override_settings(BOARD_API_URL="http://backend.test", BOARD_API_TIMEOUT=3, BOARD_CREATOR_ID=1)
class BoardViewTests(SimpleTestCase):
    def setUp(self) -> None:
        views.reset_board()
        self.addCleanup(views.reset_board)
        patcher = mock.patch("board.api.requests.Session")
        self.session = patcher.start().return_value
        self.addCleanup(patcher.stop)
        self.client = APIClient()
        self.listing = [
            _work_order(1, "Fix login bug", stage=1),
            _work_order(2, "Update docs", stage=3, assignee=DANA),
        ]

    def _respond(self, *responses: mock.Mock) -> None:
        self.session.request.side_effect = list(responses)

    def test_board_lists_columns_and_filters(self) -> None:
        self._respond(_mock_response(payload=self.listing))

        response = self.client.get(reverse("board"), {"q": "dana"})
        self.assertEqual(response.status_code, 200)
        columns: List[Dict[str, Any]] = response.data["columns"]
        self.assertEqual([column["name"] for column in columns], [stage.name for stage in STAGES])
        self.assertEqual(columns[1]["count"], 0)
        self.assertEqual(columns[3]["cards"][0]["initials"], "DS")
        self.assertEqual(columns[3]["cards"][0]["createdOn"], "Mar 5")

        again = self.client.get(reverse("board"))
        self.assertEqual(again.data["columns"][1]["count"], 1)
        self.assertEqual(self.session.request.call_count, 1)

    def test_board_reports_fetch_failure(self) -> None:
        self._respond(_mock_response(status_code=500, reason="Internal Server Error"))

        response = self.client.get(reverse("board"))
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data["detail"], "Failed to fetch work orders: 500 Internal Server Error")

    def test_move_card_reverts_on_failure(self) -> None:
        self._respond(
            _mock_response(payload=self.listing),
            _mock_response(status_code=500, reason="Internal Server Error"),
        )

        response = self.client.post(reverse("board-card-move", args=[1]), {"stage": 3}, format="json")
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data["detail"], "Failed to update work order")
        self.assertEqual(views.get_board().find(1)["stage"], 1)

    def test_move_card(self) -> None:
        self._respond(_mock_response(payload=self.listing), _mock_response(status_code=204))

        response = self.client.post(reverse("board-card-move", args=[1]), {"stage": 4}, format="json")
        self.assertEqual(response.status_code, 200)
        done = response.data["columns"][4]["cards"][0]
        self.assertEqual(done["id"], 1)
        self.assertTrue(done["done"])
        method, url = self.session.request.call_args[0]
        self.assertEqual((method, url), ("PUT", "http://backend.test/api/WorkOrder/1"))

    def test_add_card(self) -> None:
        self._respond(
            _mock_response(payload=self.listing),
            _mock_response(status_code=201, payload=_work_order(3, "New card", stage=0)),
        )

        response = self.client.post(reverse("board-cards"), {"stage": 0, "description": "New card"}, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["id"], 3)
        self.assertEqual(response.data["stageName"], "Backlog")

    def test_delete_card(self) -> None:
        self._respond(_mock_response(payload=self.listing), _mock_response(status_code=204))

        response = self.client.delete(reverse("board-card-detail", args=[2]))
        self.assertEqual(response.status_code, 204)
        self.assertIsNone(views.get_board().find(2))

    def test_delete_unknown_card(self) -> None:
        self._respond(_mock_response(payload=self.listing))

        response = self.client.delete(reverse("board-card-detail", args=[42]))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.session.request.call_count, 1)

    def test_drag_indicator(self) -> None:
        self._respond(_mock_response(payload=self.listing))

        response = self.client.post(reverse("board-card-drag", args=[2]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get(reverse("board")).data["dragging"], 2)

        self.assertEqual(self.client.post(reverse("board-card-drag", args=[42])).status_code, 404)

        response = self.client.delete(reverse("board-card-drag", args=[2]))
        self.assertIsNone(response.data["dragging"])
        self.assertIsNone(self.client.get(reverse("board")).data["dragging"])

    def test_concurrent_moves_report_their_own_outcome(self) -> None:
        entered = threading.Event()
        release = threading.Event()

        def respond(method: str, url: str, **kwargs: Any) -> mock.Mock:
            if method == "GET":
                return _mock_response(payload=self.listing)
            if url.endswith("/1"):
                entered.set()
                release.wait(5)
                return _mock_response(status_code=500, reason="Internal Server Error")
            return _mock_response(status_code=204)

        self.session.request.side_effect = respond
        views.get_board()
        results: Dict[str, int] = {}

        def move(name: str, card_id: int) -> None:
            response = APIClient().post(reverse("board-card-move", args=[card_id]), {"stage": 2}, format="json")
            results[name] = response.status_code

        first = threading.Thread(target=move, args=("first", 1))
        second = threading.Thread(target=move, args=("second", 2))
        first.start()
        self.assertTrue(entered.wait(5))
        second.start()
        second.join(0.2)
        self.assertTrue(second.is_alive())

        release.set()
        first.join(5)
        second.join(5)
        self.assertEqual(results, {"first": 502, "second": 200})
        board = views.get_board()
        self.assertEqual(board.find(1)["stage"], 1)
        self.assertEqual(board.find(2)["stage"], 2)
        self.assertIsNone(board.error)


class _InProcessSession:
    """Sends the board's requests through the Django test client."""

    def __init__(self, client: APIClient) -> None:
        self.client = client

    def request(self, method: str, url: str, json: Any = None, timeout: Optional[float] = None) -> requests.Response:
        body = dumps(json) if json is not None else ""
        result = self.client.generic(method, urlsplit(url).path, body, content_type="application/json")
        response = requests.Response()
        response.status_code = result.status_code
        response.reason = result.reason_phrase
        response._content = result.content
        response.encoding = "utf-8"
        return response


class BoardAgainstApiTests(TestCase):
    def setUp(self) -> None:
        self.creator = User.objects.create(first_name="Ada", last_name="Lovelace")
        api = WorkOrderApi("http://testserver", timeout=1, session=_InProcessSession(APIClient()))
        self.board = BoardState(api, creator_id=self.creator.id)

    def test_card_lifecycle(self) -> None:
        self.assertTrue(self.board.load())
        self.assertEqual(self.board.work_orders, [])

        created = self.board.add_card(0, "Test card")
        self.assertIsNotNone(created)
        self.assertEqual(created["createdBy"]["firstName"], "Ada")

        self.assertTrue(self.board.move(created["id"], 2))
        stored = WorkOrder.objects.get(pk=created["id"])
        self.assertEqual(stored.stage, WorkOrder.IN_PROGRESS)
        self.assertTrue(stored.active)
        self.assertFalse(stored.complete)
        self.assertEqual(stored.created_by_id, self.creator.id)

        self.assertTrue(self.board.delete(created["id"]))
        self.assertFalse(WorkOrder.objects.exists())

    def test_move_of_a_card_deleted_elsewhere_reverts(self) -> None:
        work_order = WorkOrder.objects.create(created_by=self.creator, description="Fix login bug", stage=1)
        self.board.load()
        work_order.delete()

        self.assertFalse(self.board.move(work_order.id, 3))
        self.assertEqual(self.board.find(work_order.id)["stage"], 1)
        self.assertEqual(self.board.error, "Failed to update work order")
