"""Embedding provider interface shared by all strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence


class EmbeddingProvider(ABC):
    """Turns text into fixed-length vectors.

    Exactly one provider is active per knowledge base; vectors from different
    providers must never be compared. ``embed_batch`` has the same semantics
    as calling ``embed`` per item, implementations may batch internally.

    Providers are context managers: leaving the block calls ``close()``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier of the strategy and model, e.g. ``remote-api:gemini/text-embedding-004``."""

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Return the embedding vector for *text*."""

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Return one vector per text, in input order."""
        return [self.embed(t) for t in texts]

    def fit(self, corpus: Sequence[str]) -> None:
        """Prepare the provider from the full corpus before ingestion.

        Only corpus-dependent strategies need this; the default is a no-op.
        """

    def close(self) -> None:
        """Release any resources held by the provider."""

    def __enter__(self) -> EmbeddingProvider:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
