"""Lexical embeddings: bag-of-words count vectors over a corpus vocabulary.

No external model: the vocabulary is built from the full corpus by ``fit()``
(lower-cased whitespace tokens, surrounding punctuation stripped, first-seen
order, capped at ``vocabulary_cap``). A text embeds as its term counts over
that vocabulary, L2-normalised. Terms outside the vocabulary are ignored.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence

from loguru import logger

from quarry.embed.base import EmbeddingProvider
from quarry.errors import ProviderError

_EDGE_PUNCT_RE = re.compile(r"^\W+|\W+$")


def tokenize(text: str) -> list[str]:
    """Lower-case *text*, split on whitespace, strip edge punctuation."""
    tokens: list[str] = []
    for raw in text.lower().split():
        token = _EDGE_PUNCT_RE.sub("", raw)
        if token:
            tokens.append(token)
    return tokens


def build_vocabulary(corpus: Sequence[str], cap: int) -> list[str]:
    """Deduplicated tokens of *corpus* in first-seen order, at most *cap* terms."""
    seen: dict[str, None] = {}
    for text in corpus:
        for token in tokenize(text):
            if token not in seen:
                seen[token] = None
                if len(seen) >= cap:
                    return list(seen)
    return list(seen)


def l2_normalize(vector: list[float]) -> list[float]:
    """Return *vector* scaled to unit length; the zero vector is returned as-is."""
    norm = math.sqrt(sum(v * v for v in vector))
    if norm == 0:
        return vector
    return [v / norm for v in vector]


class LexicalEmbeddingProvider(EmbeddingProvider):
    """Count-vector embeddings over a vocabulary learned from the corpus.

    Args:
        vocabulary_cap: Maximum vocabulary size (and so vector length).
    """

    def __init__(self, vocabulary_cap: int = 5_000) -> None:
        if vocabulary_cap < 1:
            raise ValueError("vocabulary_cap must be >= 1")
        self.vocabulary_cap = vocabulary_cap
        self._index: dict[str, int] = {}
        self._fitted = False

    @property
    def name(self) -> str:
        return "lexical"

    @property
    def vocabulary(self) -> list[str]:
        return list(self._index)

    @property
    def dimension(self) -> int:
        return len(self._index)

    def fit(self, corpus: Sequence[str]) -> None:
        vocab = build_vocabulary(corpus, self.vocabulary_cap)
        self._index = {term: i for i, term in enumerate(vocab)}
        self._fitted = True
        logger.info("Lexical vocabulary built: {} terms from {} texts", len(vocab), len(corpus))

    def embed(self, text: str) -> list[float]:
        if not self._fitted:
            raise ProviderError(self.name, "call fit() on the corpus before embedding")
        # A corpus of punctuation only fits an empty vocabulary: vectors are [].
        if not self._index:
            return []
        vector = [0.0] * len(self._index)
        for token in tokenize(text):
            idx = self._index.get(token)
            if idx is not None:
                vector[idx] += 1.0
        return l2_normalize(vector)
