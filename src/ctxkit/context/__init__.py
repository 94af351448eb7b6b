"""Context assembly re-exports.

This package provides a unified interface for building bounded LLM context:
    - Escaping and truncation primitives
    - Record compression
    - Section rendering
    - Token budget allocation and the assembly engine
"""

from __future__ import annotations

from ctxkit.context.budget import Allocation, TokenBudget
from ctxkit.context.compression import (
    compress_project,
    compress_pull_request,
    compress_work_item,
    summarize_reviewers,
)
from ctxkit.context.engine import ContextEngine, ContextSection, ContextStats, SectionStats
from ctxkit.context.records import (
    CompressedProject,
    CompressedPullRequest,
    CompressedWorkItem,
    ProjectData,
    PullRequestData,
    RecordBundle,
    ReviewerInfo,
    WorkItemData,
)
from ctxkit.context.sections import (
    TITLE_MAX_LENGTH,
    SectionKind,
    render_projects,
    render_pull_requests,
    render_section,
    render_work_items,
)
from ctxkit.context.text import escape_xml, truncate_text

__all__ = [
    "TITLE_MAX_LENGTH",
    "Allocation",
    "CompressedProject",
    "CompressedPullRequest",
    "CompressedWorkItem",
    "ContextEngine",
    "ContextSection",
    "ContextStats",
    "ProjectData",
    "PullRequestData",
    "RecordBundle",
    "ReviewerInfo",
    "SectionKind",
    "SectionStats",
    "TokenBudget",
    "WorkItemData",
    "compress_project",
    "compress_pull_request",
    "compress_work_item",
    "escape_xml",
    "render_projects",
    "render_pull_requests",
    "render_section",
    "render_work_items",
    "summarize_reviewers",
    "truncate_text",
]
