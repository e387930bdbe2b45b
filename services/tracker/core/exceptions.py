"""Error taxonomy shared by the tracker resources."""
from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.exceptions import NotFound as _DrfNotFound


class NotFound(_DrfNotFound):
    default_detail = "Not found."


class BadRequest(APIException):
    """The only input validation the replace operation performs."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request."
    default_code = "bad_request"


class ReferencedEntity(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The entity is still referenced and cannot be deleted."
    default_code = "referenced"


class WriteConflict(Exception):
    """A replace touched no row because another writer got there first.

    Views resolve it to ``NotFound`` when the row is gone; anything else
    propagates as a server error.
    """

    def __init__(self, model_name: str, pk: object) -> None:
        super().__init__(f"{model_name} {pk} was modified concurrently")
        self.model_name = model_name
        self.pk = pk
