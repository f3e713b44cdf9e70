"""Intermediate representation for imported archives.

The parsers produce PrimaryDocument, GenericNode and Raw*Node values, which
the normalizer turns into store records. Nothing here outlives one import.
"""

from dataclasses import dataclass, field
from typing import Union

UNTITLED_TASK = "Untitled Task"
UNTITLED_PROJECT = "Untitled Project"


@dataclass
class PrimaryDocument:
    """The payload entry selected from the archive."""

    entry_path: str
    layout: str  # "root" | "nested-path" | "legacy-bundle" | "nested-archive" | "sharded"
    data: bytes


@dataclass
class GenericNode:
    """One markup element with its attributes, direct text and child slots.

    A slot holds a single value or a list of values when the tag repeats.
    Children with neither attributes nor children of their own are stored
    as their bare text.
    """

    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    text: str | None = None
    children: dict[str, "SlotValue | list[SlotValue]"] = field(default_factory=dict)

    def get(self, name: str) -> "SlotValue | list[SlotValue] | None":
        return self.children.get(name)

    def has(self, name: str) -> bool:
        return name in self.children


SlotValue = Union[str, GenericNode]


@dataclass
class RawTaskNode:
    """A task read from the source tree, before normalization."""

    source_id: str | None = None
    name: str | None = None
    note: str | None = None
    added: str | None = None
    modified: str | None = None
    completed: str | None = None
    due: str | None = None
    start: str | None = None
    flagged: str | None = None
    owner_project_name: str | None = None
    children: list["RawTaskNode"] = field(default_factory=list)


@dataclass
class RawProjectNode:
    """A project-marked node, classified once during extraction."""

    source_id: str | None = None
    name: str | None = None
    note: str | None = None
    added: str | None = None
    modified: str | None = None
    completed: str | None = None
    due: str | None = None
    start: str | None = None
    status: str | None = None


@dataclass
class ExtractedHierarchy:
    tasks: list[RawTaskNode] = field(default_factory=list)
    projects: list[RawProjectNode] = field(default_factory=list)
