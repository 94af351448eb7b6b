"""Context assembly: render, count, admit, evict, build.

The ContextEngine owns one TokenBudget per pass and applies every
admission decision in sequence, so eviction order is deterministic even
when sections are rendered elsewhere.

Usage:
    engine = ContextEngine(ContextConfig(total_budget=2000))
    context = engine.from_records(work_items=items, pull_requests=prs)
    stats = engine.get_stats()
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ctxkit.context.budget import TokenBudget
from ctxkit.context.sections import SectionKind, render_section
from ctxkit.core.config import ContextConfig
from ctxkit.core.console import get_logger
from ctxkit.core.result import BudgetOverflowError, BudgetValidationError, Ok, Result
from ctxkit.core.tokens import TokenCountFn, TokenCounter

logger = get_logger(__name__)

EMPTY_CONTEXT = "<context />"


@dataclass(frozen=True, slots=True)
class ContextSection:
    name: str
    content: str
    priority: int
    tokens: int


@dataclass(frozen=True, slots=True)
class SectionStats:
    name: str
    tokens: int
    priority: int


@dataclass(frozen=True, slots=True)
class ContextStats:
    """Token usage after a pass, for diagnostics."""

    total_tokens: int
    remaining_tokens: int
    section_count: int
    sections: tuple[SectionStats, ...]


class ContextEngine:
    """Assemble a bounded context from prioritized sections."""

    def __init__(
        self,
        config: ContextConfig | None = None,
        counter: TokenCountFn | None = None,
    ) -> None:
        self.config = config or ContextConfig()
        self._count: TokenCountFn = counter or TokenCounter(default_model=self.config.model)
        self._budget = TokenBudget(self.config.total_budget)
        self._sections: list[ContextSection] = []

    @property
    def budget(self) -> TokenBudget:
        return self._budget

    def add_section(
        self, name: str, content: str, priority: int
    ) -> Result[None, BudgetOverflowError]:
        """Count ``content`` once and admit it, evicting lower priorities if needed.

        Adding an existing name replaces that section. If the replacement
        cannot be admitted, the previous version is restored.
        """
        tokens = self._count(content)
        if tokens < 0:
            raise BudgetValidationError(
                "token counter returned a negative count", context={"section": name, "tokens": tokens}
            )

        previous = self._take(name)

        if not self._budget.can_allocate(tokens):
            overflow = self._budget.handle_overflow(name, tokens, priority)
            if overflow.is_err():
                error = overflow.error
                self._forget(error.dropped)
                if previous is not None:
                    self._admit(previous)
                logger.warning("Could not fit section %s: %s", name, error)
                return overflow
            self._forget(overflow.value)

        self._admit(ContextSection(name=name, content=content, priority=priority, tokens=tokens))
        logger.debug("Admitted section %s (%d tokens, priority %d)", name, tokens, priority)
        return Ok(None)

    def add_records(
        self,
        kind: SectionKind,
        records: Sequence[object],
        priority: int | None = None,
        max_items: int | None = None,
    ) -> Result[None, BudgetOverflowError]:
        """Render ``records`` as a ``kind`` section and add it under the kind's tag."""
        cap = max_items if max_items is not None else self.config.max_items
        content = render_section(kind, records, cap)
        if priority is None:
            priority = getattr(self.config.priorities, kind.value)
        return self.add_section(kind.tag, content, priority)

    def build(self) -> str:
        """Join admitted sections, highest priority first, inside ``<context>``."""
        if not self._sections:
            return EMPTY_CONTEXT

        ordered = sorted(self._sections, key=lambda s: s.priority, reverse=True)
        body = "\n\n".join(s.content for s in ordered)
        return f"<context>\n{body}\n</context>"

    def get_stats(self) -> ContextStats:
        return ContextStats(
            total_tokens=self._budget.used(),
            remaining_tokens=self._budget.remaining(),
            section_count=len(self._sections),
            sections=tuple(
                SectionStats(name=s.name, tokens=s.tokens, priority=s.priority)
                for s in self._sections
            ),
        )

    def from_records(
        self,
        work_items: Sequence[object] = (),
        pull_requests: Sequence[object] = (),
        projects: Sequence[object] = (),
    ) -> str:
        """Add every non-empty kind at its configured priority and build.

        Sections that cannot fit are logged and skipped.
        """
        batches = (
            (SectionKind.WORK_ITEMS, work_items),
            (SectionKind.PULL_REQUESTS, pull_requests),
            (SectionKind.PROJECTS, projects),
        )
        for kind, records in batches:
            if not records:
                continue
            self.add_records(kind, records)

        return self.build()

    def reset(self) -> None:
        """Clear all sections and start a fresh budget."""
        self._sections = []
        self._budget = TokenBudget(self.config.total_budget)

    def _admit(self, section: ContextSection) -> None:
        self._budget.allocate(section.name, section.tokens, section.priority)
        self._sections.append(section)

    def _take(self, name: str) -> ContextSection | None:
        for index, section in enumerate(self._sections):
            if section.name == name:
                self._budget.release(name)
                return self._sections.pop(index)
        return None

    def _forget(self, names: Sequence[str]) -> None:
        if not names:
            return
        dropped = set(names)
        self._sections = [s for s in self._sections if s.name not in dropped]
        for name in names:
            logger.info("Evicted section %s to make room", name)
