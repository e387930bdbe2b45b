"""API views for managing work orders."""
from __future__ import annotations

import logging

from django.db import transaction
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response

from core.exceptions import NotFound
from core.viewsets import FullReplaceModelViewSet

from .models import WorkOrder
from .serializers import MoveStageSerializer, WorkOrderSerializer

logger = logging.getLogger(__name__)


def _warn_unknown_stage(work_order: WorkOrder) -> None:
    if not work_order.has_known_stage:
        logger.warning("Work order %s stored with unknown stage %s", work_order.pk, work_order.stage)


class WorkOrderViewSet(FullReplaceModelViewSet):
    queryset = WorkOrder.objects.select_related("assigned_to", "created_by").all()
    serializer_class = WorkOrderSerializer
    capability_resource = "workorder"

    def perform_create(self, serializer) -> None:
        super().perform_create(serializer)
        _warn_unknown_stage(serializer.instance)

    def perform_update(self, serializer) -> None:
        serializer.save()
        _warn_unknown_stage(serializer.instance)

    @action(detail=True, methods=["post"], url_path="move")
    def move(self, request: Request, *args, **kwargs) -> Response:
        """Move a work order to a stage, deriving its lifecycle flags server-side."""

        work_order = self.get_object()
        payload = MoveStageSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        stage = payload.validated_data["stage"]

        with transaction.atomic():
            try:
                locked = WorkOrder.objects.select_for_update().get(pk=work_order.pk)
            except WorkOrder.DoesNotExist as exc:
                raise NotFound() from exc
            previous = locked.stage
            locked.move_to(stage)

        logger.info("Work order %s moved from stage %s to %s", locked.pk, previous, stage)
        serializer = self.get_serializer(self.get_queryset().get(pk=locked.pk))
        return Response(serializer.data)
