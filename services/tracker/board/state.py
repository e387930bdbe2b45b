"""Client-side board cache and its synchronization with the work-order API."""
from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Dict, List, Mapping, Optional

from django.utils import timezone

from .api import NetworkFailure, WorkOrderApi
from .stages import STAGE_IDS, STAGES, apply_stage_move

logger = logging.getLogger(__name__)

# How each operation reconciles the local cache with the server.
OPTIMISTIC = "optimistic"  # change locally, send, restore the snapshot on failure
CONFIRM_FIRST = "confirm_first"  # send, change locally only after success
ADOPT_SERVER = "adopt_server"  # send, cache exactly what the server returned

SYNC_POLICIES: Dict[str, str] = {
    "move": OPTIMISTIC,
    "create": ADOPT_SERVER,
    "delete": CONFIRM_FIRST,
}

_SUPPORTED_POLICIES = {
    "move": {OPTIMISTIC, CONFIRM_FIRST},
    "create": {ADOPT_SERVER},
    "delete": {OPTIMISTIC, CONFIRM_FIRST},
}

FETCH_FAILED = "Failed to fetch work orders"
UPDATE_FAILED = "Failed to update work order"
CREATE_FAILED = "Failed to create work order"
DELETE_FAILED = "Failed to delete work order"


def matches_query(work_order: Mapping[str, Any], query: str) -> bool:
    """Case-insensitive substring match on description and assignee names."""

    needle = query.strip().lower()
    if not needle:
        return True
    if needle in (work_order.get("description") or "").lower():
        return True
    assignee = work_order.get("assignedTo")
    if not assignee:
        return False
    return (
        needle in (assignee.get("firstName") or "").lower()
        or needle in (assignee.get("lastName") or "").lower()
    )


class BoardState:
    """The board's cached copy of every work order.

    The list is fetched once by ``load``; afterwards it changes only through
    ``move``, ``add_card`` and ``delete``, each followed by a single request
    for the affected work order. Failures leave a flat message in ``error``.
    Callers sharing one board hold ``lock`` across an operation and the read
    of ``error`` that reports it.
    """

    def __init__(
        self,
        api: WorkOrderApi,
        creator_id: int = 1,
        policies: Optional[Mapping[str, str]] = None,
    ) -> None:
        merged = dict(SYNC_POLICIES)
        merged.update(policies or {})
        for operation, policy in merged.items():
            if policy not in _SUPPORTED_POLICIES.get(operation, set()):
                raise ValueError(f"Unsupported {operation!r} policy: {policy!r}")
        self.api = api
        self.creator_id = creator_id
        self.policies = merged
        self._work_orders: List[Dict[str, Any]] = []
        self.loaded = False
        self.error: Optional[str] = None
        self.dragging: Optional[int] = None
        self.lock = threading.RLock()

    @property
    def work_orders(self) -> List[Dict[str, Any]]:
        return list(self._work_orders)

    def load(self) -> bool:
        try:
            work_orders = self.api.list_work_orders()
        except NetworkFailure as exc:
            self.error = f"{FETCH_FAILED}: {exc}"
            return False
        self._work_orders = work_orders
        self.loaded = True
        logger.info("Loaded %d work orders", len(work_orders))
        anomalies = self.anomalous_stages()
        if anomalies:
            logger.warning("Work orders found with stages outside the board: %s", anomalies)
        return True

    def clear_error(self) -> None:
        self.error = None

    def find(self, work_order_id: int) -> Optional[Dict[str, Any]]:
        for work_order in self._work_orders:
            if work_order.get("id") == work_order_id:
                return work_order
        return None

    def _index_of(self, work_order_id: int) -> int:
        for index, work_order in enumerate(self._work_orders):
            if work_order.get("id") == work_order_id:
                return index
        return -1

    def _put_local(self, work_order: Dict[str, Any]) -> None:
        index = self._index_of(work_order["id"])
        if index >= 0:
            self._work_orders[index] = work_order

    def start_drag(self, work_order_id: int) -> None:
        self.dragging = work_order_id

    def cancel_drag(self) -> None:
        self.dragging = None

    def move(self, work_order_id: int, stage: int) -> bool:
        """Move a card to ``stage``; returns ``True`` once the server accepted it."""

        work_order = self.find(work_order_id)
        if work_order is None or stage not in STAGE_IDS or work_order.get("stage") == stage:
            self.cancel_drag()
            return False

        snapshot = copy.deepcopy(work_order)
        moved = apply_stage_move(work_order, stage)
        optimistic = self.policies["move"] == OPTIMISTIC
        if optimistic:
            self._put_local(moved)
        self.cancel_drag()

        try:
            self.api.replace_work_order(moved)
        except NetworkFailure as exc:
            logger.warning("Moving work order %s to stage %s failed: %s", work_order_id, stage, exc)
            if optimistic:
                self._put_local(snapshot)
            self.error = UPDATE_FAILED
            return False

        if not optimistic:
            self._put_local(moved)
        return True

    def add_card(self, stage: int, description: str) -> Optional[Dict[str, Any]]:
        """Create a card and cache the server's copy of it."""

        if not description.strip() or stage not in STAGE_IDS:
            return None

        payload = {
            "description": description,
            "stage": stage,
            "complete": False,
            "active": False,
            "canceled": False,
            "createdById": self.creator_id,
            "assignedTo": None,
            "assignedToId": None,
            "createdAtTime": timezone.now().isoformat(),
            "completedAtTime": None,
        }
        try:
            created = self.api.create_work_order(payload)
        except NetworkFailure as exc:
            logger.warning("Creating a card in stage %s failed: %s", stage, exc)
            self.error = CREATE_FAILED
            return None

        self._work_orders.append(created)
        return created

    def delete(self, work_order_id: int) -> bool:
        index = self._index_of(work_order_id)
        if index < 0:
            return False

        optimistic = self.policies["delete"] == OPTIMISTIC
        removed = self._work_orders[index]
        if optimistic:
            del self._work_orders[index]

        try:
            self.api.delete_work_order(work_order_id)
        except NetworkFailure as exc:
            logger.warning("Deleting work order %s failed: %s", work_order_id, exc)
            if optimistic:
                self._work_orders.insert(index, removed)
            self.error = DELETE_FAILED
            return False

        if not optimistic:
            self._work_orders = [wo for wo in self._work_orders if wo.get("id") != work_order_id]
        return True

    def filtered(self, query: str = "") -> List[Dict[str, Any]]:
        return [wo for wo in self._work_orders if matches_query(wo, query)]

    def columns(self, query: str = "") -> List[Dict[str, Any]]:
        visible = self.filtered(query)
        return [
            {"stage": stage, "items": [wo for wo in visible if wo.get("stage") == stage.id]}
            for stage in STAGES
        ]

    def anomalous_stages(self) -> List[Any]:
        stages = {wo.get("stage") for wo in self._work_orders}
        return sorted(
            (stage for stage in stages if stage not in STAGE_IDS),
            key=lambda stage: (stage is None, stage or 0),
        )
