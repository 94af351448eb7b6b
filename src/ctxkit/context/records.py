"""Source records and their compressed, token-frugal shapes.

Source records arrive already fetched and typed from upstream researchers;
they are pydantic models so JSON payloads can be validated at the edge.
Field aliases accept the camelCase keys those payloads use.

Compressed records are frozen dataclasses holding only what the renderers
emit. Dates, full paths and full reviewer lists never survive compression.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ReviewerVote = Literal["approved", "approved-with-suggestions", "waiting", "rejected", "none"]


class _SourceRecord(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class WorkItemData(_SourceRecord):
    """A tracker work item with its blocking relationships."""

    id: int
    title: str
    state: str
    priority: int
    assigned_to: str | None = None
    created_date: datetime | None = None
    changed_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    sprint_path: str | None = None
    blocked_by: list[int] | None = None
    blocks: list[int] | None = None


class ReviewerInfo(_SourceRecord):
    name: str
    vote: ReviewerVote = "none"
    required: bool = False


class PullRequestData(_SourceRecord):
    """A pull request with its reviewers. ``repository`` is a full path."""

    id: int
    title: str
    author: str
    status: str
    created_date: datetime | None = None
    repository: str
    target_branch: str | None = None
    reviewers: list[ReviewerInfo] = Field(default_factory=list)


class ProjectData(_SourceRecord):
    """A planning project discovered on disk."""

    path: str | None = None
    name: str
    milestone: str | None = None
    current_phase: str | None = None
    status: str | None = None
    progress: float | None = None
    remaining_tasks: list[str] | None = None
    blockers: list[str] | None = None


class RecordBundle(_SourceRecord):
    """Everything one assembly pass consumes, as produced by the researchers."""

    work_items: list[WorkItemData] = Field(default_factory=list)
    pull_requests: list[PullRequestData] = Field(default_factory=list)
    projects: list[ProjectData] = Field(default_factory=list)


@dataclass(frozen=True, slots=True)
class CompressedWorkItem:
    id: int
    title: str
    state: str
    priority: int
    assigned_to: str | None = None
    tags: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class CompressedPullRequest:
    id: int
    title: str
    author: str
    status: str
    repository: str
    reviewer_summary: str


@dataclass(frozen=True, slots=True)
class CompressedProject:
    name: str
    current_phase: str | None = None
    status: str | None = None
    remaining_tasks: tuple[str, ...] | None = None
    blockers: tuple[str, ...] | None = None


__all__ = [
    "CompressedProject",
    "CompressedPullRequest",
    "CompressedWorkItem",
    "ProjectData",
    "PullRequestData",
    "RecordBundle",
    "ReviewerInfo",
    "ReviewerVote",
    "WorkItemData",
]
