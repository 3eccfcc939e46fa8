"""Dense retriever: embed the query, rank every entry by cosine similarity.

  score(q, e) = dot(q, e) / (|q| * |e|)      0 if either magnitude is 0

Ranking is a stable descending sort, so entries with equal scores keep
their knowledge-base order. Retrieval is pure in-memory computation; the
only blocking step is embedding the query.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

from quarry.errors import DimensionMismatchError
from quarry.models import Entry, QueryResult

if TYPE_CHECKING:
    from quarry.rag.knowledge_base import KnowledgeBase

DEFAULT_TOP_K = 3


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between *a* and *b*, in [-1, 1].

    Raises:
        DimensionMismatchError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


def rank(
    query_vector: Sequence[float],
    entries: Sequence[Entry],
    top_k: int = DEFAULT_TOP_K,
) -> list[QueryResult]:
    """Score *entries* against *query_vector*; return the best *top_k*, best-first."""
    if top_k < 1:
        raise ValueError(f"top_k must be >= 1, got {top_k}")

    scored = [
        QueryResult(entry=e, score=cosine_similarity(query_vector, e.embedding))
        for e in entries
    ]
    scored.sort(key=lambda r: r.score, reverse=True)
    return scored[:top_k]


def search(
    query: str,
    kb: KnowledgeBase,
    top_k: int = DEFAULT_TOP_K,
) -> list[QueryResult]:
    """Return the *top_k* entries of *kb* most similar to *query*.

    An uninitialized or empty knowledge base yields ``[]`` without calling
    the embedding provider.

    Raises:
        ValueError: If *top_k* < 1.
        ProviderError: If the query cannot be embedded.
        DimensionMismatchError: If the query vector and the stored vectors
            came from different providers.
    """
    if top_k < 1:
        raise ValueError(f"top_k must be >= 1, got {top_k}")

    entries = kb.entries
    if not kb.initialized or not entries:
        return []

    query_vector = kb.provider.embed(query)
    return rank(query_vector, entries, top_k)
