"""Pydantic schemas for the import API."""

from pydantic import BaseModel


class ImportReport(BaseModel):
    projects_imported: int
    tasks_imported: int


class ImportPreviewResponse(BaseModel):
    layout_detected: str
    entry_path: str
    project_count: int
    task_count: int
    completed_task_count: int
    project_names: list[str]
    first_task_titles: list[str]
