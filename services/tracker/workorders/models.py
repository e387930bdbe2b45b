"""Database models for the work-order board."""
from __future__ import annotations

from django.core.validators import MaxValueValidator
from django.db import models
from django.utils import timezone


class WorkOrder(models.Model):
    """A card on the board, positioned in one of the fixed pipeline stages."""

    BACKLOG = 0
    UNASSIGNED = 1
    IN_PROGRESS = 2
    IN_REVIEW = 3
    COMPLETED = 4

    STAGE_CHOICES = [
        (BACKLOG, "Backlog"),
        (UNASSIGNED, "Unassigned"),
        (IN_PROGRESS, "In Progress"),
        (IN_REVIEW, "In Review"),
        (COMPLETED, "Completed"),
    ]
    KNOWN_STAGES = frozenset(value for value, _ in STAGE_CHOICES)
    ACTIVE_STAGES = frozenset({IN_PROGRESS, IN_REVIEW})

    created_by = models.ForeignKey(
        "accounts.User",
        on_delete=models.PROTECT,
        related_name="created_work_orders",
    )
    created_at_time = models.DateTimeField(default=timezone.now)
    completed_at_time = models.DateTimeField(null=True, blank=True)
    assigned_to = models.ForeignKey(
        "accounts.User",
        on_delete=models.SET_NULL,
        related_name="assigned_work_orders",
        null=True,
        blank=True,
    )
    canceled = models.BooleanField(default=False)
    active = models.BooleanField(default=False)
    complete = models.BooleanField(default=False)
    description = models.TextField()
    # Unknown stage values are stored as-is; only the byte range is enforced.
    stage = models.PositiveSmallIntegerField(
        default=BACKLOG,
        validators=[MaxValueValidator(255)],
    )

    class Meta:
        db_table = "work_order"
        ordering = ["id"]
        indexes = [
            models.Index(fields=["active"], name="index_work_order_1"),
        ]

    def __str__(self) -> str:
        return f"#{self.pk} {self.description} (stage {self.stage})"

    @property
    def has_known_stage(self) -> bool:
        return self.stage in self.KNOWN_STAGES

    def apply_stage(self, stage: int) -> None:
        """Set ``stage`` and the flags derived from it; nothing else changes."""

        self.stage = stage
        self.complete = stage == self.COMPLETED
        self.active = stage in self.ACTIVE_STAGES
        self.canceled = False

    def move_to(self, stage: int) -> None:
        self.apply_stage(stage)
        self.save(update_fields=["stage", "complete", "active", "canceled"])
