"""Render compressed records into bounded XML sections.

One renderer per section kind. All renderers share a contract:

- an empty (possibly capped) input renders as ``<tag count="0" />``;
- ``count`` is the number of rendered items, and ``total`` is added only
  when ``max_items`` dropped some;
- all free text is escaped, titles are truncated at a word boundary;
- absent optional fields are omitted entirely.

Renderers accept source records or already-compressed records.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum
from typing import TypeVar

from ctxkit.context.compression import compress_project, compress_pull_request, compress_work_item
from ctxkit.context.records import (
    CompressedProject,
    CompressedPullRequest,
    CompressedWorkItem,
    ProjectData,
    PullRequestData,
    WorkItemData,
)
from ctxkit.context.text import escape_xml, truncate_text

TITLE_MAX_LENGTH = 100

WorkItemLike = WorkItemData | CompressedWorkItem
PullRequestLike = PullRequestData | CompressedPullRequest
ProjectLike = ProjectData | CompressedProject

S = TypeVar("S")
C = TypeVar("C")


class SectionKind(Enum):
    """The fixed set of section kinds; values are the wrapper tag names."""

    WORK_ITEMS = "work_items"
    PULL_REQUESTS = "pull_requests"
    PROJECTS = "projects"

    @property
    def tag(self) -> str:
        return self.value


def _cap(records: Sequence[S], max_items: int | None) -> Sequence[S]:
    if max_items is not None and max_items < 0:
        raise ValueError("max_items must be non-negative")
    # None and 0 both mean "no cap".
    return records[:max_items] if max_items else records


def _compressed(
    records: Sequence[S | C],
    compressed_type: type[C],
    compress: Callable[[S], C],
) -> list[C]:
    return [r if isinstance(r, compressed_type) else compress(r) for r in records]  # type: ignore[arg-type]


def _child(tag: str, text: str) -> str:
    return f"    <{tag}>{escape_xml(text)}</{tag}>"


def _title(text: str) -> str:
    return _child("title", truncate_text(text, TITLE_MAX_LENGTH))


def _wrap(kind: SectionKind, elements: list[str], total: int) -> str:
    if not elements:
        return f'<{kind.tag} count="0" />'
    total_attr = f' total="{total}"' if total > len(elements) else ""
    body = "\n".join(elements)
    return f'<{kind.tag} count="{len(elements)}"{total_attr}>\n{body}\n</{kind.tag}>'


def render_work_items(items: Sequence[WorkItemLike], max_items: int | None = None) -> str:
    compressed = _compressed(_cap(items, max_items), CompressedWorkItem, compress_work_item)

    elements: list[str] = []
    for item in compressed:
        lines = [
            f'  <item id="{item.id}" priority="P{item.priority}">',
            _title(item.title),
            _child("state", item.state),
        ]
        if item.assigned_to:
            lines.append(_child("assigned", item.assigned_to))
        if item.tags:
            lines.append(_child("tags", ", ".join(item.tags)))
        lines.append("  </item>")
        elements.append("\n".join(lines))

    return _wrap(SectionKind.WORK_ITEMS, elements, len(items))


def render_pull_requests(prs: Sequence[PullRequestLike], max_items: int | None = None) -> str:
    compressed = _compressed(_cap(prs, max_items), CompressedPullRequest, compress_pull_request)

    elements = [
        "\n".join(
            [
                f'  <pr id="{pr.id}" status="{escape_xml(pr.status)}">',
                _title(pr.title),
                _child("author", pr.author),
                _child("repo", pr.repository),
                _child("reviewers", pr.reviewer_summary),
                "  </pr>",
            ]
        )
        for pr in compressed
    ]

    return _wrap(SectionKind.PULL_REQUESTS, elements, len(prs))


def render_projects(projects: Sequence[ProjectLike], max_items: int | None = None) -> str:
    compressed = _compressed(_cap(projects, max_items), CompressedProject, compress_project)

    elements: list[str] = []
    for project in compressed:
        lines = [f'  <project name="{escape_xml(project.name)}">']
        if project.current_phase:
            lines.append(_child("phase", project.current_phase))
        if project.status:
            lines.append(_child("status", project.status))
        if project.remaining_tasks:
            lines.append(_child("remaining_tasks", "; ".join(project.remaining_tasks)))
        if project.blockers:
            lines.append(_child("blockers", "; ".join(project.blockers)))
        lines.append("  </project>")
        elements.append("\n".join(lines))

    return _wrap(SectionKind.PROJECTS, elements, len(projects))


_RENDERERS: dict[SectionKind, Callable[..., str]] = {
    SectionKind.WORK_ITEMS: render_work_items,
    SectionKind.PULL_REQUESTS: render_pull_requests,
    SectionKind.PROJECTS: render_projects,
}


def render_section(kind: SectionKind, records: Sequence[object], max_items: int | None = None) -> str:
    """Render ``records`` with the renderer registered for ``kind``."""
    return _RENDERERS[kind](records, max_items)


__all__ = [
    "TITLE_MAX_LENGTH",
    "SectionKind",
    "render_projects",
    "render_pull_requests",
    "render_section",
    "render_work_items",
]
