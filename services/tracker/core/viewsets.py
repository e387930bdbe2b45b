"""Resource plumbing shared by the User and WorkOrder endpoints."""
from __future__ import annotations

import logging
from typing import Any, Dict

from django.db import DatabaseError, IntegrityError, transaction
from rest_framework import mixins, serializers, status, viewsets
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.reverse import reverse

from .exceptions import BadRequest, NotFound, WriteConflict

logger = logging.getLogger(__name__)


def ids_match(body_id: Any, route_id: Any) -> bool:
    if body_id is None or isinstance(body_id, bool):
        return False
    try:
        return int(body_id) == int(route_id)
    except (TypeError, ValueError):
        return False


class FullReplaceModelSerializer(serializers.ModelSerializer):
    """Model serializer whose update overwrites an existing row or fails.

    ``save(force_update=True)`` never falls back to an INSERT, so a row that
    vanished between read and write shows up as ``WriteConflict``. Writable
    fields left out of the body are reset to the column default, or null,
    so a replace never keeps stale values.
    """

    def omitted_values(self, validated_data: Dict[str, Any]) -> Dict[str, Any]:
        opts = self.Meta.model._meta
        values: Dict[str, Any] = {}
        for field in self.fields.values():
            if field.read_only or field.source in validated_data:
                continue
            model_field = opts.get_field(field.source)
            if model_field.has_default():
                values[field.source] = model_field.get_default()
            elif model_field.null:
                values[field.source] = None
        return values

    def update(self, instance, validated_data: Dict[str, Any]):  # type: ignore[override]
        values = self.omitted_values(validated_data)
        values.update(validated_data)
        for attr, value in values.items():
            setattr(instance, attr, value)
        try:
            with transaction.atomic():
                instance.save(force_update=True)
        except IntegrityError:
            raise
        except DatabaseError as exc:
            raise WriteConflict(type(instance).__name__, instance.pk) from exc
        return instance


class FullReplaceModelViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """list/get/create/replace/delete with no partial updates.

    Subclasses set ``capability_resource`` so ``CapabilityPermission`` can
    name each operation.
    """

    http_method_names = ["get", "post", "put", "delete", "head", "options"]
    lookup_value_regex = r"\d+"
    capability_resource: str

    def get_success_headers(self, data: Dict[str, Any]) -> Dict[str, str]:
        pk = data.get("id")
        if pk is None:
            return {}
        location = reverse(f"{self.basename}-detail", args=[pk], request=self.request)
        return {"Location": location}

    def perform_create(self, serializer) -> None:
        instance = serializer.save()
        logger.info("Created %s %s", type(instance).__name__, instance.pk)

    def perform_update(self, serializer) -> None:
        serializer.save()

    def update(self, request: Request, *args, **kwargs) -> Response:
        route_id = kwargs[self.lookup_url_kwarg or self.lookup_field]
        body = request.data if isinstance(request.data, dict) else {}
        if not ids_match(body.get("id"), route_id):
            raise BadRequest("The id in the route does not match the id in the body.")

        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            self.perform_update(serializer)
        except WriteConflict as exc:
            if not self.get_queryset().filter(pk=instance.pk).exists():
                logger.warning("%s; row is gone", exc)
                raise NotFound() from exc
            raise
        logger.info("Replaced %s %s", type(instance).__name__, instance.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    def perform_destroy(self, instance) -> None:
        pk = instance.pk
        instance.delete()
        logger.info("Deleted %s %s", type(instance).__name__, pk)
