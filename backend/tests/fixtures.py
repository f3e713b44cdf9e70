"""Shared test helpers: synthetic OmniFocus documents and export archives."""

import io
import zipfile
from xml.sax.saxutils import escape, quoteattr

OMNIFOCUS_NS = "http://www.omnigroup.com/namespace/OmniFocus/v2"


def make_zip(entries: dict[str, bytes | str]) -> bytes:
    """Build an in-memory zip archive from {path: content}."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for path, content in entries.items():
            zf.writestr(path, content)
    return buf.getvalue()


def _element(tag: str, value: str | None) -> str:
    if value is None:
        return ""
    return f"<{tag}>{escape(value)}</{tag}>"


def task_xml(
    name: str | None,
    *,
    task_id: str | None = None,
    note: str | None = None,
    completed: str | None = None,
    flagged: str | None = None,
    due: str | None = None,
    start: str | None = None,
    added: str | None = None,
    parent_ref: str | None = None,
    children: list[str] | tuple[str, ...] = (),
) -> str:
    """Build one <task> element. children are nested task elements."""
    attrs = f" id={quoteattr(task_id)}" if task_id else ""
    body = "".join([
        f'<task idref={quoteattr(parent_ref)}/>' if parent_ref else "",
        _element("added", added),
        _element("name", name),
        _element("note", note),
        _element("start", start),
        _element("due", due),
        _element("completed", completed),
        _element("flagged", flagged),
        *children,
    ])
    return f"<task{attrs}>{body}</task>"


def project_xml(
    name: str | None,
    *,
    project_id: str | None = None,
    status: str = "active",
    note: str | None = None,
    completed: str | None = None,
    due: str | None = None,
    start: str | None = None,
    children: list[str] | tuple[str, ...] = (),
) -> str:
    """Build a project: a <task> carrying the <project> marker."""
    attrs = f" id={quoteattr(project_id)}" if project_id else ""
    body = "".join([
        f"<project><status>{escape(status)}</status></project>",
        _element("name", name),
        _element("note", note),
        _element("start", start),
        _element("due", due),
        _element("completed", completed),
        *children,
    ])
    return f"<task{attrs}>{body}</task>"


def document_xml(*items: str) -> str:
    """Wrap items in an <omnifocus> root document."""
    return (
        '<?xml version="1.0" encoding="utf-8" standalone="no"?>\n'
        f'<omnifocus xmlns="{OMNIFOCUS_NS}" app-id="com.omnigroup.OmniFocus3">'
        + "".join(items)
        + "</omnifocus>"
    )


def nested_chain(names: list[str]) -> list[str]:
    """Tasks nested one inside the next: names[0] contains names[1]..."""
    inner: list[str] = []
    for name in reversed(names):
        inner = [task_xml(name, children=inner)]
    return inner


def nested_elements(tag: str, depth: int, inner: str = "", *, attrs: str = "") -> str:
    """depth copies of <tag> wrapped one inside the next around inner."""
    return f"<{tag}{attrs}>" * depth + inner + f"</{tag}>" * depth


LAUNCH_DOCUMENT = document_xml(
    project_xml(
        "Launch",
        project_id="p-launch",
        children=[
            task_xml("Design", task_id="t-design", flagged="true"),
            task_xml("Ship", task_id="t-ship", completed="2024-03-01T10:00:00.000Z"),
        ],
    ),
    task_xml("Call Mom", task_id="t-mom"),
)


def make_launch_archive() -> bytes:
    return make_zip({"contents.xml": LAUNCH_DOCUMENT})
