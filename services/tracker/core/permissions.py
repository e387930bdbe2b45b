"""Capability check interposed between the API views and storage."""
from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings
from rest_framework.permissions import BasePermission
from rest_framework.request import Request

logger = logging.getLogger(__name__)

_METHOD_ACTIONS = {
    "GET": "list",
    "HEAD": "list",
    "OPTIONS": "list",
    "POST": "create",
    "PUT": "update",
    "DELETE": "destroy",
}


def capability_for(view, request: Request) -> Optional[str]:
    """Return ``"<resource>.<action>"`` for a request, or ``None`` if unscoped."""

    resource = getattr(view, "capability_resource", None)
    if resource is None:
        return None
    action = getattr(view, "action", None) or _METHOD_ACTIONS.get(request.method or "", "")
    return f"{resource}.{action}"


class CapabilityPermission(BasePermission):
    """Refuse capabilities listed in ``TRACKER_DENIED_CAPABILITIES``.

    Every capability is granted by default; the setting is the single place
    where an operator narrows the surface.
    """

    message = "Operation not permitted."

    def has_permission(self, request: Request, view) -> bool:
        capability = capability_for(view, request)
        if capability is None:
            return True
        denied = getattr(settings, "TRACKER_DENIED_CAPABILITIES", frozenset())
        if capability in denied:
            logger.warning("Capability %s denied", capability)
            return False
        return True
