"""Canonical task and project records for Focus Flow.

Normalized* records are what the import pipeline hands to the store: the
persisted shape minus identifier, timestamps and ordering, which the store
assigns on insert. Task and Project are the persisted rows.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

TaskStatus = Literal["todo", "in-progress", "completed", "blocked", "deferred"]
TaskPriority = Literal["low", "medium", "high", "critical"]

# ---------------------------------------------------------------------------
# Insert shapes
# ---------------------------------------------------------------------------


class NormalizedProject(BaseModel):
    name: str
    description: str = ""
    color: str
    status: TaskStatus = "todo"
    start_date: datetime | None = None
    target_date: datetime | None = None
    completed_date: datetime | None = None


class NormalizedTask(BaseModel):
    title: str
    notes: str = ""
    status: TaskStatus = "todo"
    priority: TaskPriority = "medium"
    # Owning project *name* coming out of the pipeline; the import
    # coordinator rewrites it to a project id (or None) before insert.
    project_ref: str | None = None
    due_date: datetime | None = None
    planned_date: datetime | None = None
    start_date: datetime | None = None
    completed_date: datetime | None = None
    added_date: datetime | None = None
    modified_date: datetime | None = None


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------


class Project(BaseModel):
    project_id: str
    name: str
    description: str
    color: str
    status: TaskStatus
    start_date: datetime | None = None
    target_date: datetime | None = None
    completed_date: datetime | None = None
    progress: int = 0
    order: int
    created_at: datetime
    updated_at: datetime


class Task(BaseModel):
    task_id: str
    title: str
    notes: str
    status: TaskStatus
    priority: TaskPriority
    project_id: str | None = None
    due_date: datetime | None = None
    planned_date: datetime | None = None
    start_date: datetime | None = None
    completed_date: datetime | None = None
    added_date: datetime | None = None
    modified_date: datetime | None = None
    progress: int = 0
    tags: list[str] = Field(default_factory=list)
    order: int
    created_at: datetime
    updated_at: datetime
