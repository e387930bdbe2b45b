"""DRF exception handling for the tracker API."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from django.db.models import ProtectedError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from .exceptions import ReferencedEntity

logger = logging.getLogger(__name__)


def exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """Flatten API errors to ``{"detail": ...}`` and map blocked deletes to 409.

    Returning ``None`` leaves the exception unhandled, so Django answers with
    a generic server error.
    """

    if isinstance(exc, ProtectedError):
        exc = ReferencedEntity()

    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    view = context.get("view")
    logger.info(
        "%s rejected with %s: %s",
        type(view).__name__ if view is not None else "request",
        response.status_code,
        response.data,
    )
    return response
