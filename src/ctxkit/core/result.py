"""
Unified Result types and error hierarchy for ctxkit.

This module provides:
1. Result[T, E] type for explicit error handling
2. Domain-specific exception hierarchy
3. Helper functions for Result operations

Usage:
    from ctxkit.core.result import Ok, Err, Result, BudgetOverflowError

    def admit(section: str) -> Result[list[str], BudgetOverflowError]:
        if too_big:
            return Err(BudgetOverflowError(...))
        return Ok(["dropped_section"])

    result = admit("work_items")
    if result.is_ok():
        print(result.value)
    else:
        print(result.error)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=Exception)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Represents a successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Represents a failed result containing an error."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """Raise the contained error."""
        raise self.error


# Type alias for Result
Result = Ok[T] | Err[E]


# ---------------------------------------------------------------------------
# Domain-specific error hierarchy
# ---------------------------------------------------------------------------


class CtxKitError(Exception):
    """Base exception for all ctxkit errors.

    All custom exceptions should inherit from this class to enable
    consistent error handling across the codebase.
    """

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class ConfigurationError(CtxKitError):
    """Raised for configuration issues.

    Examples:
    - Config file parse errors
    - Config root is not a mapping
    """

    pass


class BudgetValidationError(CtxKitError):
    """Raised when a caller breaks the token budget contract.

    Examples:
    - Negative capacity or token counts
    - A direct allocation that would push usage past capacity
    """

    pass


class BudgetOverflowError(CtxKitError):
    """A section could not be admitted even after evicting lower priorities.

    Sections dropped while trying to make room stay dropped; ``dropped`` and
    ``freed`` report exactly what was sacrificed.
    """

    def __init__(
        self,
        section: str,
        requested: int,
        priority: int,
        dropped: list[str],
        freed: int,
        shortfall: int,
    ) -> None:
        super().__init__(
            f"Cannot fit section '{section}' ({requested} tokens, priority {priority})",
            context={
                "dropped": dropped,
                "freed": freed,
                "shortfall": shortfall,
            },
        )
        self.section = section
        self.requested = requested
        self.priority = priority
        self.dropped = list(dropped)
        self.freed = freed
        self.shortfall = shortfall


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def try_result(fn: Callable[[], T], error_type: type[E] = CtxKitError) -> Result[T, E]:  # type: ignore[assignment]
    """Execute a function and wrap the result in Ok/Err.

    Args:
        fn: Function to execute
        error_type: Exception type to catch (default: CtxKitError)

    Returns:
        Ok(value) on success, Err(exception) on failure
    """
    try:
        return Ok(fn())
    except error_type as exc:
        return Err(exc)


__all__ = [
    # Result types
    "Ok",
    "Err",
    "Result",
    # Error hierarchy
    "CtxKitError",
    "ConfigurationError",
    "BudgetValidationError",
    "BudgetOverflowError",
    # Helpers
    "try_result",
]
