"""Walk the OmniFocus document tree and pull out projects and tasks.

Projects and tasks share one element shape in the export. A ``task``
carrying a ``project`` child is a project; anything else is a task. Older
exports also write projects as top-level ``project`` elements.

Tasks are nested either structurally (``task`` inside ``task``) or, in the
flat schema, by parent reference: a ``<task idref="..."/>`` child with no
content of its own points at the parent.
"""

import logging
from dataclasses import dataclass, field

from focusflow.importer.errors import HierarchyTooDeepError
from focusflow.importer.models import (
    UNTITLED_PROJECT,
    ExtractedHierarchy,
    GenericNode,
    RawProjectNode,
    RawTaskNode,
)
from focusflow.importer.parsers.document import as_list, collect_text, extract_text

logger = logging.getLogger(__name__)

MAX_TASK_DEPTH = 200

TASK_TAG = "task"
PROJECT_TAG = "project"
FOLDER_TAG = "folder"
CONTEXT_TAG = "context"


# ---------------------------------------------------------------------------
# Node shape helpers
# ---------------------------------------------------------------------------


def _nodes(value) -> list[GenericNode]:
    """Slot entries that are elements; bare-text entries carry no task."""
    return [v for v in as_list(value) if isinstance(v, GenericNode)]


def _field(node: GenericNode, name: str) -> str | None:
    values = as_list(node.get(name))
    return extract_text(values[0]) if values else None


def _is_parent_reference(node: GenericNode) -> bool:
    return (
        set(node.attributes) == {"idref"}
        and not node.children
        and node.text is None
    )


def _parent_reference(node: GenericNode) -> str | None:
    for child in _nodes(node.get(TASK_TAG)):
        if _is_parent_reference(child):
            return child.attributes["idref"]
    return None


def _nested_tasks(node: GenericNode) -> list[GenericNode]:
    return [c for c in _nodes(node.get(TASK_TAG)) if not _is_parent_reference(c)]


def is_project_node(node: GenericNode) -> bool:
    """A node is a project iff it carries the project marker slot."""
    return node.has(PROJECT_TAG)


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


def _read_project(node: GenericNode) -> RawProjectNode:
    # Flat exports keep project status inside the marker; legacy
    # project elements carry it directly.
    marker = node.get(PROJECT_TAG)
    status_source = marker if isinstance(marker, GenericNode) else node
    return RawProjectNode(
        source_id=node.attributes.get("id"),
        name=_field(node, "name"),
        note=collect_text(node.get("note")),
        added=_field(node, "added"),
        modified=_field(node, "modified"),
        completed=_field(node, "completed"),
        due=_field(node, "due"),
        start=_field(node, "start"),
        status=_field(status_source, "status"),
    )


def _read_task_tree(
    node: GenericNode, owner: str | None, depth: int
) -> RawTaskNode:
    """Read a task and its nested children, capping nesting depth."""
    if depth > MAX_TASK_DEPTH:
        raise HierarchyTooDeepError(MAX_TASK_DEPTH)
    children: list[RawTaskNode] = []
    for child in _nested_tasks(node):
        children.append(_read_task_tree(child, owner, depth + 1))
    return RawTaskNode(
        source_id=node.attributes.get("id"),
        name=_field(node, "name"),
        note=collect_text(node.get("note")),
        added=_field(node, "added"),
        modified=_field(node, "modified"),
        completed=_field(node, "completed"),
        due=_field(node, "due"),
        start=_field(node, "start"),
        flagged=_field(node, "flagged"),
        owner_project_name=owner,
        children=children,
    )


def flatten_tasks(roots: list[RawTaskNode]) -> list[RawTaskNode]:
    """Depth-first, parent before children, in source order."""
    flat: list[RawTaskNode] = []
    stack = list(reversed(roots))
    while stack:
        task = stack.pop()
        flat.append(task)
        stack.extend(reversed(task.children))
    return flat


def _owner_name(project: RawProjectNode) -> str:
    return project.name or UNTITLED_PROJECT


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


@dataclass
class _Extraction:
    result: ExtractedHierarchy = field(default_factory=ExtractedHierarchy)
    project_names: dict[str, str] = field(default_factory=dict)

    def add_project(self, node: GenericNode) -> None:
        project = _read_project(node)
        self.result.projects.append(project)
        owner = _owner_name(project)
        if project.source_id:
            self.project_names[project.source_id] = owner
        self.add_children(node, owner)

    def add_children(self, node: GenericNode, owner: str | None) -> None:
        roots = [_read_task_tree(c, owner, 1) for c in _nested_tasks(node)]
        self.result.tasks.extend(flatten_tasks(roots))

    def add_container(self, node: GenericNode, depth: int) -> None:
        """Folders and contexts: unowned tasks, plus any projects filed there."""
        if depth > MAX_TASK_DEPTH:
            raise HierarchyTooDeepError(MAX_TASK_DEPTH)
        for child in _nodes(node.get(PROJECT_TAG)):
            self.add_project(child)
        for child in _nested_tasks(node):
            if is_project_node(child):
                self.add_project(child)
            else:
                self.result.tasks.extend(flatten_tasks([_read_task_tree(child, None, 1)]))
        for tag in (FOLDER_TAG, CONTEXT_TAG):
            for child in _nodes(node.get(tag)):
                self.add_container(child, depth + 1)


def _resolve_owner(
    node: GenericNode,
    project_names: dict[str, str],
    tasks_by_id: dict[str, GenericNode],
) -> str | None:
    """Follow flat-schema parent references up to a project, if any."""
    ref = _parent_reference(node)
    seen: set[str] = set()
    while ref is not None and ref not in seen and len(seen) < MAX_TASK_DEPTH:
        if ref in project_names:
            return project_names[ref]
        parent = tasks_by_id.get(ref)
        if parent is None:
            return None
        seen.add(ref)
        ref = _parent_reference(parent)
    return None


def extract_hierarchy(root: GenericNode) -> ExtractedHierarchy:
    """Classify and flatten the document into raw projects and tasks.

    Raises HierarchyTooDeepError when nesting exceeds MAX_TASK_DEPTH.
    """
    extraction = _Extraction()
    top_level = _nodes(root.get(TASK_TAG))

    # Pass 1: projects and everything nested under them.
    for node in _nodes(root.get(PROJECT_TAG)):
        extraction.add_project(node)
    for node in top_level:
        if is_project_node(node):
            extraction.add_project(node)

    # Pass 2: top-level tasks; owned only through flat parent references.
    tasks_by_id = {
        n.attributes["id"]: n
        for n in top_level
        if "id" in n.attributes and not is_project_node(n)
    }
    for node in top_level:
        if is_project_node(node):
            continue
        owner = _resolve_owner(node, extraction.project_names, tasks_by_id)
        tree = _read_task_tree(node, owner, 1)
        extraction.result.tasks.extend(flatten_tasks([tree]))

    # Pass 3: folder and context containers.
    for tag in (FOLDER_TAG, CONTEXT_TAG):
        for node in _nodes(root.get(tag)):
            extraction.add_container(node, 1)

    logger.info(
        "Extracted %d projects and %d tasks",
        len(extraction.result.projects),
        len(extraction.result.tasks),
    )
    return extraction.result
