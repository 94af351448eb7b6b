"""Token counting for rendered context sections.

This module provides:
- TokenCounter: Token counting backed by tiktoken with a heuristic fallback
- TokenCountFn: The callable shape accepted by the context engine

The budget allocator never counts tokens itself; the engine invokes a
counter exactly once per rendered section.
"""

from __future__ import annotations

import math
from typing import Callable, Protocol, Sequence, cast

import tiktoken

from ctxkit.core.console import get_logger

logger = get_logger(__name__)

FALLBACK_ENCODING = "cl100k_base"
CHARS_PER_TOKEN = 4

TokenCountFn = Callable[[str], int]


class _EncoderProtocol(Protocol):
    def encode(self, text: str, *, disallowed_special: Sequence[str] | set[str] | tuple[str, ...] = ()) -> list[int]:
        ...


class TokenCounter:
    """Token counter backed by tiktoken with heuristic fallback."""

    def __init__(self, default_model: str = "claude-opus-4-5") -> None:
        self.default_model = default_model
        self._encoders: dict[str, _EncoderProtocol | None] = {}

    def __call__(self, text: str) -> int:
        return self.count_tokens(text)

    def count_tokens(self, text: str, model: str | None = None) -> int:
        if not text or not text.strip():
            return 0

        target_model = model or self.default_model
        encoder = self._get_encoder(target_model)
        if encoder is None:
            return self._heuristic_tokens(text)
        try:
            return len(encoder.encode(text, disallowed_special=()))
        except Exception as exc:
            logger.warning("Token counting failed for model %s: %s", target_model, exc)
            return self._heuristic_tokens(text)

    def _heuristic_tokens(self, text: str) -> int:
        return math.ceil(len(text) / CHARS_PER_TOKEN)

    def _get_encoder(self, model: str) -> _EncoderProtocol | None:
        if model in self._encoders:
            return self._encoders[model]

        try:
            encoder = tiktoken.encoding_for_model(model)
        except KeyError:
            # Non-OpenAI models share a general-purpose BPE as an approximation.
            encoder = self._load_fallback_encoding(model)
        except Exception as exc:
            logger.warning("Failed to load encoding for model %s: %s", model, exc)
            encoder = None

        cached = cast(_EncoderProtocol | None, encoder)
        self._encoders[model] = cached
        return cached

    def _load_fallback_encoding(self, model: str) -> _EncoderProtocol | None:
        try:
            return cast(_EncoderProtocol, tiktoken.get_encoding(FALLBACK_ENCODING))
        except Exception as exc:
            logger.warning(
                "No encoding available for model %s; using %d chars/token estimate: %s",
                model,
                CHARS_PER_TOKEN,
                exc,
            )
            return None
