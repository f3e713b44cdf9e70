"""Task and project persistence."""

from focusflow.tasks.store import TaskStore

__all__ = ["TaskStore"]
