"""Lossy compression of source records for low-token rendering.

Every function here is pure and total: optional source fields that are
absent are omitted from the output, never replaced by empty markers.
Title truncation is left to the renderers.
"""

from __future__ import annotations

from collections.abc import Sequence

from ctxkit.context.records import (
    CompressedProject,
    CompressedPullRequest,
    CompressedWorkItem,
    ProjectData,
    PullRequestData,
    ReviewerInfo,
    WorkItemData,
)

MAX_REMAINING_TASKS = 3
_APPROVING_VOTES = frozenset({"approved", "approved-with-suggestions"})


def compress_work_item(item: WorkItemData) -> CompressedWorkItem:
    """Keep id, title, state, priority, plus assignee and tags when present."""
    return CompressedWorkItem(
        id=item.id,
        title=item.title,
        state=item.state,
        priority=item.priority,
        assigned_to=item.assigned_to,
        tags=tuple(item.tags) if item.tags else None,
    )


def summarize_reviewers(reviewers: Sequence[ReviewerInfo]) -> str:
    """Summarize required-reviewer votes, e.g. ``"1/2 approved, 1 waiting"``.

    Only reviewers flagged ``required`` are counted. "Approved with
    suggestions" lands in the approved bucket. An empty reviewer list
    yields ``"No reviewers"``.
    """
    if not reviewers:
        return "No reviewers"

    required = [r for r in reviewers if r.required]
    approved = sum(1 for r in required if r.vote in _APPROVING_VOTES)
    waiting = sum(1 for r in required if r.vote == "waiting")
    rejected = sum(1 for r in required if r.vote == "rejected")

    parts = [f"{approved}/{len(required)} approved"]
    if waiting:
        parts.append(f"{waiting} waiting")
    if rejected:
        parts.append(f"{rejected} rejected")
    return ", ".join(parts)


def repository_name(repository: str) -> str:
    """Reduce ``org/team/repo`` to ``repo``."""
    return repository.rstrip("/").rsplit("/", 1)[-1] or repository


def compress_pull_request(pr: PullRequestData) -> CompressedPullRequest:
    return CompressedPullRequest(
        id=pr.id,
        title=pr.title,
        author=pr.author,
        status=pr.status,
        repository=repository_name(pr.repository),
        reviewer_summary=summarize_reviewers(pr.reviewers),
    )


def compress_project(project: ProjectData) -> CompressedProject:
    """Cap remaining tasks to the first three; blockers are kept verbatim."""
    remaining = project.remaining_tasks
    return CompressedProject(
        name=project.name,
        current_phase=project.current_phase,
        status=project.status,
        remaining_tasks=tuple(remaining[:MAX_REMAINING_TASKS]) if remaining is not None else None,
        blockers=tuple(project.blockers) if project.blockers is not None else None,
    )


__all__ = [
    "MAX_REMAINING_TASKS",
    "compress_project",
    "compress_pull_request",
    "compress_work_item",
    "repository_name",
    "summarize_reviewers",
]
