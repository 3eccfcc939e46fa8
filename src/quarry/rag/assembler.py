"""Context assembler: ranked passages → one context string plus their sources.

Passages are joined in rank order with ``SEPARATOR``. With ``max_chars``
set, passages are added while the joined context stays within the cap; a
first passage longer than the cap is cut to ``max_chars``. Sources cover
only the passages that made it into the context.
"""

from __future__ import annotations

from collections.abc import Sequence

from quarry.models import AssembledContext, QueryResult

SEPARATOR = "\n\n---\n\n"


def assemble(
    results: Sequence[QueryResult],
    max_chars: int | None = None,
) -> AssembledContext:
    """Build the context string and source set for *results*.

    Args:
        results: Retriever output, best-first.
        max_chars: Optional cap on the context length in characters.
    """
    if max_chars is not None and max_chars < 1:
        raise ValueError(f"max_chars must be >= 1, got {max_chars}")
    if not results:
        return AssembledContext()

    passages: list[str] = []
    sources: set[str] = set()
    total = 0

    for result in results:
        content = result.entry.content
        added = len(content) + (len(SEPARATOR) if passages else 0)
        if max_chars is not None and total + added > max_chars:
            if not passages:
                passages.append(content[:max_chars])
                sources.add(result.entry.source)
            break
        passages.append(content)
        sources.add(result.entry.source)
        total += added

    return AssembledContext(context=SEPARATOR.join(passages), sources=sources)
