"""Token budget allocation with priority-based eviction.

The budget is pure bookkeeping: callers render a section, count its
tokens, then ask the budget whether it fits. When it does not, the caller
invokes :meth:`TokenBudget.handle_overflow` to evict strictly
lower-priority sections, lowest first, until the newcomer fits.

Invariants held after every successful call:
- ``used() == sum(a.tokens for a in allocations().values())``
- ``used() <= capacity``

One budget belongs to one assembly pass; it is not thread-safe.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from ctxkit.core.console import get_logger
from ctxkit.core.result import BudgetOverflowError, BudgetValidationError, Err, Ok, Result

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Allocation:
    """Tokens charged to one named section and its eviction priority."""

    tokens: int
    priority: int


class TokenBudget:
    """Fixed-capacity token budget shared by named, prioritized sections."""

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise BudgetValidationError(
                "capacity must be non-negative", context={"capacity": capacity}
            )
        self._capacity = capacity
        self._used = 0
        self._allocations: dict[str, Allocation] = {}

    def __repr__(self) -> str:
        return f"TokenBudget(capacity={self._capacity}, used={self._used})"

    @property
    def capacity(self) -> int:
        """Token capacity fixed at construction."""
        return self._capacity

    def remaining(self) -> int:
        """Return tokens still available for allocation."""
        return self.capacity - self._used

    def used(self) -> int:
        """Return tokens currently allocated."""
        return self._used

    def can_allocate(self, tokens: int) -> bool:
        """Return True if ``tokens`` more would fit. Never mutates."""
        self._check_tokens(tokens)
        return self._used + tokens <= self.capacity

    def allocate(self, section: str, tokens: int, priority: int) -> None:
        """Record ``section``, replacing any previous allocation of that name.

        Capacity is not checked for room here; call :meth:`can_allocate` or
        :meth:`handle_overflow` first. An allocation that would push usage
        past capacity is a caller error and leaves the budget untouched.
        """
        self._check_tokens(tokens)
        previous = self._allocations.get(section)
        new_used = self._used - (previous.tokens if previous else 0) + tokens
        if new_used > self.capacity:
            raise BudgetValidationError(
                f"Allocating '{section}' would exceed capacity",
                context={"tokens": tokens, "used": self._used, "capacity": self.capacity},
            )

        self._allocations[section] = Allocation(tokens=tokens, priority=priority)
        self._used = new_used

    def has_allocation(self, section: str) -> bool:
        return section in self._allocations

    def release(self, section: str) -> int:
        """Remove ``section`` and return the tokens it held (0 if absent)."""
        allocation = self._allocations.pop(section, None)
        if allocation is None:
            return 0
        self._used -= allocation.tokens
        return allocation.tokens

    def allocations(self) -> Mapping[str, Allocation]:
        """Read-only snapshot of current allocations in admission order."""
        return MappingProxyType(dict(self._allocations))

    def handle_overflow(
        self, section: str, tokens: int, priority: int
    ) -> Result[list[str], BudgetOverflowError]:
        """Evict lower-priority sections until ``tokens`` fit.

        Candidates are allocations with priority strictly below ``priority``,
        dropped lowest first (ties in admission order). Eviction stops as
        soon as the section fits. If every candidate is dropped and it still
        does not fit, an ``Err`` reports what was dropped; those drops are
        not rolled back.

        Returns:
            Ok(names dropped, possibly empty) or Err(BudgetOverflowError)
        """
        self._check_tokens(tokens)

        # sorted() is stable, so equal priorities keep admission order.
        candidates = sorted(
            (
                (name, allocation)
                for name, allocation in self._allocations.items()
                if allocation.priority < priority
            ),
            key=lambda entry: entry[1].priority,
        )

        dropped: list[str] = []
        freed = 0
        for name, allocation in candidates:
            if self.can_allocate(tokens):
                break
            freed += self.release(name)
            dropped.append(name)
            logger.debug(
                "Dropped section %s (%d tokens, priority %d) for %s",
                name,
                allocation.tokens,
                allocation.priority,
                section,
            )

        if self.can_allocate(tokens):
            return Ok(dropped)

        return Err(
            BudgetOverflowError(
                section=section,
                requested=tokens,
                priority=priority,
                dropped=dropped,
                freed=freed,
                shortfall=tokens - self.remaining(),
            )
        )

    def _check_tokens(self, tokens: int) -> None:
        if tokens < 0:
            raise BudgetValidationError(
                "token count must be non-negative", context={"tokens": tokens}
            )
