"""Base chunker interface for Quarry documents."""

from __future__ import annotations

from abc import ABC, abstractmethod

from quarry.models import Chunk


class BaseChunker(ABC):
    """Abstract base for all chunkers.

    Subclasses implement ``chunk()`` and may use ``_make_chunks()`` to turn
    a list of passage strings into sequentially indexed Chunks.

    Sizes are measured in characters; ``overlap`` is a character budget that
    subclasses may approximate.
    """

    def __init__(self, target_size: int = 500, overlap: int = 50) -> None:
        if target_size < 1:
            raise ValueError("target_size must be >= 1")
        if overlap < 0:
            raise ValueError("overlap must be >= 0")
        self.target_size = target_size
        self.overlap = overlap

    @abstractmethod
    def chunk(self, source: str, text: str) -> list[Chunk]:
        """Split *text* into Chunk objects for *source*.

        Args:
            source: Document identifier (usually the file name).
            text: Full decoded text of the document.

        Returns:
            Ordered list of Chunk objects with sequential ``index`` from 0.
        """

    @staticmethod
    def _make_chunks(source: str, texts: list[str]) -> list[Chunk]:
        """Convert a list of text strings into sequentially indexed Chunks."""
        return [Chunk(content=t, source=source, index=i) for i, t in enumerate(texts)]
