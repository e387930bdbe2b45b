"""HTTP client for the work-order resource."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class NetworkFailure(Exception):
    """A request was rejected, timed out, or came back with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class WorkOrderApi:
    """Thin wrapper over ``/api/WorkOrder`` with one method per operation.

    Every request carries ``timeout`` so a hung backend surfaces as a
    ``NetworkFailure`` instead of leaving the caller waiting.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls) -> "WorkOrderApi":
        return cls(settings.BOARD_API_URL, settings.BOARD_API_TIMEOUT)

    @property
    def collection_url(self) -> str:
        return self.base_url + "/api/WorkOrder"

    def detail_url(self, work_order_id: int) -> str:
        return f"{self.collection_url}/{work_order_id}"

    def _send(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> requests.Response:
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise NetworkFailure(str(exc)) from exc

        if not response.ok:
            logger.error("%s %s returned %s: %s", method, url, response.status_code, response.text)
            raise NetworkFailure(
                f"{response.status_code} {response.reason}".strip(),
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise NetworkFailure("Response body is not valid JSON", response.status_code) from exc

    def list_work_orders(self) -> List[Dict[str, Any]]:
        logger.debug("Fetching work orders from %s", self.collection_url)
        data = self._decode(self._send("GET", self.collection_url))
        if not isinstance(data, list):
            raise NetworkFailure("Expected a list of work orders")
        return data

    def create_work_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = self._decode(self._send("POST", self.collection_url, payload))
        if not isinstance(data, dict):
            raise NetworkFailure("Expected the created work order")
        return data

    def replace_work_order(self, work_order: Dict[str, Any]) -> None:
        self._send("PUT", self.detail_url(work_order["id"]), work_order)

    def delete_work_order(self, work_order_id: int) -> None:
        self._send("DELETE", self.detail_url(work_order_id))
