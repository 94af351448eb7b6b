"""XML escaping and word-boundary truncation for rendered sections."""

from __future__ import annotations

ELLIPSIS = "..."

# "&" must stay first so later replacements are not re-escaped.
_XML_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


def escape_xml(text: str | None) -> str:
    """Escape the five reserved XML characters.

    ``None`` becomes an empty string. This is a single pass: escaping
    already-escaped text escapes the ``&`` of each entity again.

    >>> escape_xml('PR <title> & "description"')
    'PR &lt;title&gt; &amp; &quot;description&quot;'
    """
    if text is None:
        return ""

    escaped = text
    for raw, entity in _XML_ENTITIES:
        escaped = escaped.replace(raw, entity)
    return escaped


def truncate_text(text: str | None, max_length: int) -> str:
    """Truncate text at a word boundary, appending an ellipsis.

    If the first ``max_length`` characters contain a space past index 0, the
    text is cut at the last such space. Otherwise the prefix is kept whole,
    so the result is at most ``max_length + 3`` characters long.

    >>> truncate_text("This is a long title", 10)
    'This is a...'
    >>> truncate_text("Supercalifragilisticexpialidocious", 10)
    'Supercalif...'
    """
    if max_length < 0:
        raise ValueError("max_length must be non-negative")
    if not text:
        return ""

    if len(text) <= max_length:
        return text

    prefix = text[:max_length]
    last_space = prefix.rfind(" ")
    if last_space > 0:
        return prefix[:last_space] + ELLIPSIS

    return prefix + ELLIPSIS
