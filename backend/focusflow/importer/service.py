"""ImportService: turns an OmniFocus export archive into stored tasks and projects."""

import asyncio
import logging
import random

import aiosqlite

from focusflow.importer.errors import MarkupCorruptError, PersistenceFailedError
from focusflow.importer.models import PrimaryDocument
from focusflow.importer.normalize import normalize_project, normalize_task
from focusflow.importer.parsers.archive import locate_primary_document
from focusflow.importer.parsers.document import parse_document
from focusflow.importer.parsers.hierarchy import extract_hierarchy
from focusflow.importer.schemas import ImportPreviewResponse, ImportReport
from focusflow.models import NormalizedProject, NormalizedTask
from focusflow.tasks.store import TaskStore

logger = logging.getLogger(__name__)


class ImportService:
    def __init__(self, store: TaskStore, *, rng: random.Random | None = None) -> None:
        self._store = store
        self._rng = rng
        # Imports share one connection and its transaction; run them one at a time.
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def preview(self, content: bytes, filename: str) -> ImportPreviewResponse:
        """Parse the archive and summarize it without writing anything."""
        document, projects, tasks = self._run_pipeline(content, filename)
        return ImportPreviewResponse(
            layout_detected=document.layout,
            entry_path=document.entry_path,
            project_count=len(projects),
            task_count=len(tasks),
            completed_task_count=sum(1 for t in tasks if t.status == "completed"),
            project_names=[p.name for p in projects],
            first_task_titles=[t.title for t in tasks[:5]],
        )

    async def import_archive(self, content: bytes, filename: str) -> ImportReport:
        """Run the full pipeline and store the result in one write."""
        _, projects, tasks = self._run_pipeline(content, filename)
        return await self.import_batch(projects, tasks)

    async def import_batch(
        self,
        projects: list[NormalizedProject],
        tasks: list[NormalizedTask],
    ) -> ImportReport:
        """Insert projects, remap task owners to project ids, insert tasks.

        All rows are staged and made durable by a single persist(). If any
        step fails, the staged rows are discarded and nothing is written.
        """
        async with self._lock:
            try:
                project_ids = await self._store.add_projects(projects)
                # Project names are not unique in exports; the last one wins.
                ids_by_name: dict[str, str] = {}
                for project, project_id in zip(projects, project_ids):
                    ids_by_name[project.name] = project_id

                remapped = [
                    task.model_copy(update={
                        "project_ref": (
                            ids_by_name.get(task.project_ref)
                            if task.project_ref is not None
                            else None
                        ),
                    })
                    for task in tasks
                ]
                await self._store.add_tasks(remapped)
            except aiosqlite.Error as e:
                await self._store.discard()
                raise PersistenceFailedError(f"Store rejected the import batch: {e}") from e
            except BaseException:
                # Cancellation included: staged rows must not reach a later persist().
                await self._store.discard()
                raise

            try:
                await self._store.persist()
            except aiosqlite.Error as e:
                await self._store.discard()
                raise PersistenceFailedError(f"Failed to save imported data: {e}") from e
            except BaseException:
                await self._store.discard()
                raise

        logger.info(
            "Imported %d projects and %d tasks", len(projects), len(tasks)
        )
        return ImportReport(
            projects_imported=len(projects),
            tasks_imported=len(tasks),
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _run_pipeline(
        self, content: bytes, filename: str
    ) -> tuple[PrimaryDocument, list[NormalizedProject], list[NormalizedTask]]:
        """Locate, parse, extract and normalize. Pure: touches no store."""
        logger.info("Importing %s (%d bytes)", filename, len(content))
        document = locate_primary_document(content)
        try:
            hierarchy = extract_hierarchy(parse_document(document.data))
        except RecursionError as e:
            raise MarkupCorruptError(f"{document.entry_path} is nested too deeply") from e
        projects = [normalize_project(p, rng=self._rng) for p in hierarchy.projects]
        tasks = [normalize_task(t) for t in hierarchy.tasks]
        return document, projects, tasks
