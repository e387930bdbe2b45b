"""Board columns and the lifecycle flags a stage move implies."""
from __future__ import annotations

from typing import Any, Dict, List, NamedTuple, Optional


class Stage(NamedTuple):
    id: int
    name: str
    color: str
    bg_color: str


BACKLOG = 0
UNASSIGNED = 1
IN_PROGRESS = 2
IN_REVIEW = 3
COMPLETED = 4

STAGES: List[Stage] = [
    Stage(BACKLOG, "Backlog", "#5E6C84", "#DFE1E6"),
    Stage(UNASSIGNED, "Unassigned", "#42526E", "#DFE8FF"),
    Stage(IN_PROGRESS, "In Progress", "#974F0C", "#FFEBD1"),
    Stage(IN_REVIEW, "In Review", "#0052CC", "#DEEBFF"),
    Stage(COMPLETED, "Completed", "#006644", "#E3FCEF"),
]

STAGE_IDS = frozenset(stage.id for stage in STAGES)
STAGE_CHOICES = [(stage.id, stage.name) for stage in STAGES]
ACTIVE_STAGES = frozenset({IN_PROGRESS, IN_REVIEW})

_BY_ID: Dict[int, Stage] = {stage.id: stage for stage in STAGES}


def stage_for(stage_id: Any) -> Optional[Stage]:
    return _BY_ID.get(stage_id)


def apply_stage_move(work_order: Dict[str, Any], stage: int) -> Dict[str, Any]:
    """Return a copy of ``work_order`` moved to ``stage``.

    The server overwrites the whole row on replace and does not check these
    flags, so every move must carry them:

    * ``complete`` only in Completed
    * ``active`` only in In Progress and In Review
    * ``canceled`` always cleared

    Every other field, including the creator and timestamps, is carried over
    unchanged.
    """

    moved = dict(work_order)
    moved["stage"] = stage
    moved["complete"] = stage == COMPLETED
    moved["active"] = stage in ACTIVE_STAGES
    moved["canceled"] = False
    return moved
