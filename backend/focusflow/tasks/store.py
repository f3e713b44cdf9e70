"""Destination store for tasks and projects, backed by SQLite.

Writes are staged: add_projects() and add_tasks() insert rows inside the
connection's open transaction, and nothing reaches disk until persist().
discard() rolls the staged rows back, leaving the store exactly as it was.
"""

import json
from datetime import UTC, datetime
from uuid import uuid4

from focusflow.db.connection import Database
from focusflow.models import NormalizedProject, NormalizedTask, Project, Task


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class TaskStore:
    """Task and project persistence. Assigns ids, timestamps and order."""

    def __init__(self, db: Database) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # Staged writes
    # ------------------------------------------------------------------

    async def add_projects(self, projects: list[NormalizedProject]) -> list[str]:
        """Stage one INSERT batch for projects. Returns ids in input order."""
        now = datetime.now(UTC).isoformat()
        start = await self._next_order("projects")
        ids = [str(uuid4()) for _ in projects]
        rows = [
            (
                project_id,
                p.name,
                p.description,
                p.color,
                p.status,
                _iso(p.start_date),
                _iso(p.target_date),
                _iso(p.completed_date),
                start + i,
                now,
                now,
            )
            for i, (project_id, p) in enumerate(zip(ids, projects))
        ]
        await self._db.stage_many(
            """
            INSERT INTO projects
                (project_id, name, description, color, status, start_date,
                 target_date, completed_date, sort_order, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            rows,
        )
        return ids

    async def add_tasks(self, tasks: list[NormalizedTask]) -> list[str]:
        """Stage one INSERT batch for tasks.

        Each task's project_ref must already be a project id or None.
        """
        now = datetime.now(UTC).isoformat()
        start = await self._next_order("tasks")
        ids = [str(uuid4()) for _ in tasks]
        rows = [
            (
                task_id,
                t.title,
                t.notes,
                t.status,
                t.priority,
                t.project_ref,
                _iso(t.due_date),
                _iso(t.planned_date),
                _iso(t.start_date),
                _iso(t.completed_date),
                _iso(t.added_date),
                _iso(t.modified_date),
                start + i,
                now,
                now,
            )
            for i, (task_id, t) in enumerate(zip(ids, tasks))
        ]
        await self._db.stage_many(
            """
            INSERT INTO tasks
                (task_id, title, notes, status, priority, project_id, due_date,
                 planned_date, start_date, completed_date, source_added_date,
                 source_modified_date, sort_order, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            rows,
        )
        return ids

    async def persist(self) -> None:
        """Make every staged write durable in one commit."""
        await self._db.commit()

    async def discard(self) -> None:
        """Drop every staged write."""
        await self._db.rollback()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_projects(self) -> list[Project]:
        rows = await self._db.fetchall(
            "SELECT * FROM projects ORDER BY sort_order"
        )
        return [self._row_to_project(row) for row in rows]

    async def list_tasks(self, *, project_id: str | None = None) -> list[Task]:
        if project_id is None:
            rows = await self._db.fetchall("SELECT * FROM tasks ORDER BY sort_order")
        else:
            rows = await self._db.fetchall(
                "SELECT * FROM tasks WHERE project_id = ? ORDER BY sort_order",
                (project_id,),
            )
        return [self._row_to_task(row) for row in rows]

    async def _next_order(self, table: str) -> int:
        row = await self._db.fetchone(
            f"SELECT COALESCE(MAX(sort_order), -1) + 1 AS next_order FROM {table}"
        )
        return row["next_order"]

    @staticmethod
    def _row_to_project(row) -> Project:
        return Project(
            project_id=row["project_id"],
            name=row["name"],
            description=row["description"],
            color=row["color"],
            status=row["status"],
            start_date=row["start_date"],
            target_date=row["target_date"],
            completed_date=row["completed_date"],
            progress=row["progress"],
            order=row["sort_order"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _row_to_task(row) -> Task:
        return Task(
            task_id=row["task_id"],
            title=row["title"],
            notes=row["notes"],
            status=row["status"],
            priority=row["priority"],
            project_id=row["project_id"],
            due_date=row["due_date"],
            planned_date=row["planned_date"],
            start_date=row["start_date"],
            completed_date=row["completed_date"],
            added_date=row["source_added_date"],
            modified_date=row["source_modified_date"],
            progress=row["progress"],
            tags=json.loads(row["tags"]),
            order=row["sort_order"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
