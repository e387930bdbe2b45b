"""Serializers for work-order entities."""
from __future__ import annotations

from rest_framework import serializers

from accounts.models import User
from accounts.serializers import UserSerializer
from core.viewsets import FullReplaceModelSerializer

from .models import WorkOrder


class WorkOrderSerializer(FullReplaceModelSerializer):
    """Users are embedded on read and referenced by id on write."""

    createdById = serializers.PrimaryKeyRelatedField(
        source="created_by", queryset=User.objects.all()
    )
    createdAtTime = serializers.DateTimeField(source="created_at_time", required=False)
    completedAtTime = serializers.DateTimeField(
        source="completed_at_time", required=False, allow_null=True
    )
    assignedToId = serializers.PrimaryKeyRelatedField(
        source="assigned_to",
        queryset=User.objects.all(),
        required=False,
        allow_null=True,
    )
    stage = serializers.IntegerField(min_value=0, max_value=255, required=False)
    assignedTo = UserSerializer(source="assigned_to", read_only=True)
    createdBy = UserSerializer(source="created_by", read_only=True)

    class Meta:
        model = WorkOrder
        fields = [
            "id",
            "createdById",
            "createdAtTime",
            "completedAtTime",
            "assignedToId",
            "canceled",
            "active",
            "complete",
            "description",
            "stage",
            "assignedTo",
            "createdBy",
        ]
        read_only_fields = ["id"]


class MoveStageSerializer(serializers.Serializer):
    stage = serializers.ChoiceField(choices=WorkOrder.STAGE_CHOICES)
