"""Import failures. Every one of them ends the current import attempt."""


class ImportFormatError(Exception):
    """Raised when the uploaded archive cannot be interpreted."""


class ArchiveLayoutUnrecognizedError(ImportFormatError):
    """No known container layout yielded a payload."""

    def __init__(self, entries: list[str], reason: str | None = None) -> None:
        self.entries = entries
        listing = ", ".join(entries) if entries else "(none)"
        message = reason or "contents.xml not found"
        super().__init__(f"Unrecognized archive layout: {message}. Available files: {listing}")


class MarkupCorruptError(ImportFormatError):
    """The payload was found but could not be decoded as markup."""


class HierarchyTooDeepError(ImportFormatError):
    """Task nesting exceeded the extraction depth limit."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Task hierarchy nested deeper than {limit} levels")


class PersistenceFailedError(Exception):
    """The final store write failed; nothing from the import was kept."""
