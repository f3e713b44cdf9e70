"""Map raw extracted nodes onto the application's task and project shapes.

Field-level gaps never fail an import: missing titles fall back to a fixed
placeholder, missing or unparsable dates are left unset.
"""

import random

from focusflow.importer.models import (
    UNTITLED_PROJECT,
    UNTITLED_TASK,
    RawProjectNode,
    RawTaskNode,
)
from focusflow.models import NormalizedProject, NormalizedTask, TaskPriority, TaskStatus
from focusflow.utils.dates import parse_timestamp

# The export carries no project colour; imported projects draw one of these.
PROJECT_COLORS = (
    "#FF3B30",
    "#FF9500",
    "#FFCC00",
    "#34C759",
    "#5AC8FA",
    "#007AFF",
    "#5856D6",
    "#AF52DE",
    "#FF2D55",
)


def map_status(completed: str | None) -> TaskStatus:
    # Dropped items have no status of their own here and read as todo.
    return "completed" if completed else "todo"


def map_priority(flagged: str | None) -> TaskPriority:
    return "high" if flagged == "true" else "medium"


def random_color(rng: random.Random | None = None) -> str:
    return (rng or random).choice(PROJECT_COLORS)


def normalize_task(raw: RawTaskNode) -> NormalizedTask:
    start = parse_timestamp(raw.start)
    return NormalizedTask(
        title=raw.name or UNTITLED_TASK,
        notes=raw.note or "",
        status=map_status(raw.completed),
        priority=map_priority(raw.flagged),
        project_ref=raw.owner_project_name,
        due_date=parse_timestamp(raw.due),
        planned_date=start,
        start_date=start,
        completed_date=parse_timestamp(raw.completed),
        added_date=parse_timestamp(raw.added),
        modified_date=parse_timestamp(raw.modified),
    )


def normalize_project(
    raw: RawProjectNode, *, rng: random.Random | None = None
) -> NormalizedProject:
    return NormalizedProject(
        name=raw.name or UNTITLED_PROJECT,
        description=raw.note or "",
        color=random_color(rng),
        status=map_status(raw.completed),
        start_date=parse_timestamp(raw.start),
        target_date=parse_timestamp(raw.due),
        completed_date=parse_timestamp(raw.completed),
    )
