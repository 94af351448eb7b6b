"""Tests for context/engine.py - section admission and context assembly."""

from __future__ import annotations

import logging

import pytest

from ctxkit.context.engine import EMPTY_CONTEXT, ContextEngine, SectionStats
from ctxkit.context.records import ProjectData, PullRequestData, WorkItemData
from ctxkit.context.sections import SectionKind
from ctxkit.core.config import ContextConfig, SectionPriorities
from ctxkit.core.result import BudgetOverflowError, BudgetValidationError


class RecordingCounter:
    """One token per character; remembers every text it counted."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def __call__(self, text: str) -> int:
        self.calls.append(text)
        return len(text)


def _engine(budget: int, **config: object) -> tuple[ContextEngine, RecordingCounter]:
    counter = RecordingCounter()
    engine = ContextEngine(ContextConfig(total_budget=budget, **config), counter=counter)  # type: ignore[arg-type]
    return engine, counter


class TestBuild:
    def test_empty_context(self) -> None:
        engine, _ = _engine(100)
        assert engine.build() == EMPTY_CONTEXT

    def test_wraps_sections_in_context_tag(self) -> None:
        engine, _ = _engine(100)
        engine.add_section("a", "<a/>", 1)
        assert engine.build() == "<context>\n<a/>\n</context>"

    def test_sorts_sections_by_priority_highest_first(self) -> None:
        engine, _ = _engine(100)
        engine.add_section("low", "<low/>", 1)
        engine.add_section("high", "<high/>", 9)
        engine.add_section("mid", "<mid/>", 5)
        assert engine.build() == "<context>\n<high/>\n\n<mid/>\n\n<low/>\n</context>"


class TestAddSection:
    def test_adds_sections_within_budget(self) -> None:
        engine, counter = _engine(100)
        result = engine.add_section("a", "x" * 40, 5)
        assert result.is_ok()
        assert engine.get_stats().total_tokens == 40
        assert counter.calls == ["x" * 40]

    def test_handles_overflow_by_dropping_lower_priority(self) -> None:
        engine, _ = _engine(100)
        engine.add_section("A", "a" * 60, 1)

        result = engine.add_section("B", "b" * 70, 2)

        assert result.is_ok()
        stats = engine.get_stats()
        assert stats.total_tokens == 70
        assert stats.remaining_tokens == 30
        assert [s.name for s in stats.sections] == ["B"]
        assert "a" * 60 not in engine.build()

    def test_returns_error_when_cannot_fit(self, caplog: pytest.LogCaptureFixture) -> None:
        engine, _ = _engine(50)
        engine.add_section("A", "a" * 40, 5)

        with caplog.at_level(logging.WARNING, logger="ctxkit"):
            result = engine.add_section("B", "b" * 30, 1)

        assert result.is_err()
        assert isinstance(result.error, BudgetOverflowError)
        assert result.error.shortfall == 20
        assert [s.name for s in engine.get_stats().sections] == ["A"]
        assert "Could not fit section B" in caplog.text

    def test_failed_overflow_keeps_dropped_sections_out(self) -> None:
        engine, _ = _engine(100)
        engine.add_section("A", "a" * 30, 1)
        engine.add_section("B", "b" * 60, 5)

        result = engine.add_section("C", "c" * 80, 3)

        assert result.is_err()
        assert result.error.dropped == ["A"]
        stats = engine.get_stats()
        assert [s.name for s in stats.sections] == ["B"]
        assert stats.total_tokens == 60

    def test_replacing_a_section_does_not_double_count(self) -> None:
        engine, _ = _engine(100)
        engine.add_section("A", "a" * 60, 1)
        result = engine.add_section("A", "a" * 80, 1)

        assert result.is_ok()
        stats = engine.get_stats()
        assert stats.total_tokens == 80
        assert stats.section_count == 1

    def test_failed_replacement_restores_previous_version(self) -> None:
        engine, _ = _engine(100)
        engine.add_section("A", "a" * 60, 1)
        result = engine.add_section("A", "a" * 150, 1)

        assert result.is_err()
        stats = engine.get_stats()
        assert stats.sections == (SectionStats(name="A", tokens=60, priority=1),)

    def test_negative_counter_is_rejected(self) -> None:
        engine = ContextEngine(ContextConfig(total_budget=10), counter=lambda text: -1)
        with pytest.raises(BudgetValidationError):
            engine.add_section("a", "x", 1)


class TestStats:
    def test_includes_per_section_breakdown(self) -> None:
        engine, _ = _engine(100)
        engine.add_section("one", "x" * 10, 3)
        engine.add_section("two", "y" * 20, 7)

        stats = engine.get_stats()

        assert stats.total_tokens == 30
        assert stats.remaining_tokens == 70
        assert stats.section_count == 2
        assert stats.sections == (
            SectionStats(name="one", tokens=10, priority=3),
            SectionStats(name="two", tokens=20, priority=7),
        )


class TestReset:
    def test_clears_all_state(self) -> None:
        engine, _ = _engine(100)
        engine.add_section("a", "x" * 50, 1)
        engine.reset()
        assert engine.build() == EMPTY_CONTEXT
        assert engine.get_stats().total_tokens == 0
        assert engine.budget.remaining() == 100


class TestFromRecords:
    work_items = [WorkItemData(id=1, title="Fix bug", state="Active", priority=1)]
    pull_requests = [PullRequestData(id=2, title="Add X", author="Bob", status="active", repository="o/r")]
    projects = [ProjectData(name="alpha", current_phase="Build")]

    def test_processes_all_kinds(self) -> None:
        engine, counter = _engine(10_000)
        context = engine.from_records(self.work_items, self.pull_requests, self.projects)

        assert context.startswith("<context>\n<work_items")
        assert context.index("<work_items") < context.index("<pull_requests") < context.index("<projects")
        assert len(counter.calls) == 3
        names = [s.name for s in engine.get_stats().sections]
        assert names == ["work_items", "pull_requests", "projects"]

    def test_skips_empty_inputs(self) -> None:
        engine, counter = _engine(10_000)
        context = engine.from_records(work_items=self.work_items)
        assert "<pull_requests" not in context
        assert "<projects" not in context
        assert len(counter.calls) == 1

    def test_respects_configured_priorities(self) -> None:
        engine, _ = _engine(
            10_000,
            priorities=SectionPriorities(work_items=1, pull_requests=2, projects=3),
        )
        context = engine.from_records(self.work_items, self.pull_requests, self.projects)
        assert context.index("<projects") < context.index("<pull_requests") < context.index("<work_items")

    def test_overflowing_section_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        engine, counter = _engine(10_000)
        engine.from_records(work_items=self.work_items)
        work_tokens = engine.get_stats().total_tokens

        tight, _ = _engine(work_tokens)
        with caplog.at_level(logging.WARNING, logger="ctxkit"):
            context = tight.from_records(self.work_items, self.pull_requests, self.projects)

        assert "<work_items" in context
        assert "<pull_requests" not in context
        assert "<projects" not in context
        assert "Could not fit section pull_requests" in caplog.text

    def test_configured_max_items_applies(self) -> None:
        engine, _ = _engine(10_000, max_items=1)
        items = [WorkItemData(id=i, title="t", state="New", priority=2) for i in (11, 12)]
        context = engine.from_records(work_items=items)
        assert 'count="1" total="2"' in context
        assert 'id="12"' not in context

    def test_add_records_uses_kind_priority(self) -> None:
        engine, _ = _engine(10_000)
        engine.add_records(SectionKind.PROJECTS, self.projects)
        assert engine.get_stats().sections[0].priority == 6
