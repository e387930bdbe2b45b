"""Database models for the people who create and work on work orders."""
from __future__ import annotations

from django.db import models


class User(models.Model):
    """An internal user referenced by work orders as creator or assignee."""

    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50)

    class Meta:
        db_table = "user_internal"
        ordering = ["id"]

    def __str__(self) -> str:
        return self.full_name

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
