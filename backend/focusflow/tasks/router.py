"""Read-only routes over the task and project store."""

from fastapi import APIRouter, Depends, Query

from focusflow.models import Project, Task
from focusflow.tasks.store import TaskStore

router = APIRouter(prefix="/api", tags=["tasks"])


def get_task_store() -> TaskStore:
    """Dependency placeholder, replaced at app startup."""
    raise RuntimeError("TaskStore not initialized")


@router.get("/projects")
async def list_projects(
    store: TaskStore = Depends(get_task_store),
) -> list[Project]:
    return await store.list_projects()


@router.get("/tasks")
async def list_tasks(
    project_id: str | None = Query(None),
    store: TaskStore = Depends(get_task_store),
) -> list[Task]:
    return await store.list_tasks(project_id=project_id)
