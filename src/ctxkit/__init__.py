"""ctxkit - bounded LLM context assembly for daily work briefings.

This package renders work items, pull requests and projects into compact
XML sections and admits them into a fixed token budget, evicting lower
priority sections when the budget overflows.

Exports:
    __version__: Package version string.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.3.0"
