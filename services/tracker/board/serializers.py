"""Serializers for the board view."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from django.utils.dateparse import parse_datetime
from rest_framework import serializers

from .stages import STAGE_CHOICES, STAGES, stage_for


def display_name(user: Optional[Mapping[str, Any]]) -> str:
    if not user:
        return ""
    return f"{user.get('firstName') or ''} {user.get('lastName') or ''}".strip()


def initials(user: Optional[Mapping[str, Any]]) -> str:
    name = display_name(user)
    if not name:
        return "?"
    return "".join(part[0] for part in name.split()).upper()[:2]


def short_date(value: Optional[str]) -> str:
    """``"2024-03-05T10:00:00Z"`` -> ``"Mar 5"``; empty for missing or bad input."""

    if not value:
        return ""
    try:
        parsed = parse_datetime(value)
    except ValueError:
        return ""
    if parsed is None:
        return ""
    return f"{parsed:%b} {parsed.day}"


class CardSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    description = serializers.CharField()
    stage = serializers.IntegerField()
    stageName = serializers.SerializerMethodField()
    assignee = serializers.SerializerMethodField()
    initials = serializers.SerializerMethodField()
    createdOn = serializers.SerializerMethodField()
    done = serializers.BooleanField(source="complete", default=False)
    canceled = serializers.BooleanField(default=False)

    def get_stageName(self, card: Mapping[str, Any]) -> str:
        # Cards with an unknown stage never land in a column; fall back to the first.
        stage = stage_for(card.get("stage")) or STAGES[0]
        return stage.name

    def get_assignee(self, card: Mapping[str, Any]) -> Optional[str]:
        return display_name(card.get("assignedTo")) or None

    def get_initials(self, card: Mapping[str, Any]) -> Optional[str]:
        if not card.get("assignedTo"):
            return None
        return initials(card["assignedTo"])

    def get_createdOn(self, card: Mapping[str, Any]) -> str:
        return short_date(card.get("createdAtTime"))


class ColumnSerializer(serializers.Serializer):
    id = serializers.IntegerField(source="stage.id")
    name = serializers.CharField(source="stage.name")
    color = serializers.CharField(source="stage.color")
    bgColor = serializers.CharField(source="stage.bg_color")
    count = serializers.SerializerMethodField()
    cards = CardSerializer(source="items", many=True)

    def get_count(self, column: Mapping[str, Any]) -> int:
        return len(column["items"])


class AddCardSerializer(serializers.Serializer):
    stage = serializers.ChoiceField(choices=STAGE_CHOICES)
    description = serializers.CharField(allow_blank=True, trim_whitespace=False)


class MoveCardSerializer(serializers.Serializer):
    stage = serializers.ChoiceField(choices=STAGE_CHOICES)
