"""Serializers for user records."""
from __future__ import annotations

from rest_framework import serializers

from core.viewsets import FullReplaceModelSerializer

from .models import User


class UserSerializer(FullReplaceModelSerializer):
    firstName = serializers.CharField(source="first_name", max_length=50)
    lastName = serializers.CharField(source="last_name", max_length=50)

    class Meta:
        model = User
        fields = ["id", "firstName", "lastName"]
        read_only_fields = ["id"]
