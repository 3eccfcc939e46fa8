"""Paragraph chunker: accumulate paragraphs up to a target size, word-tail overlap.

Algorithm:
  1. Split on blank lines; drop empty paragraphs; collapse whitespace runs.
  2. Append paragraphs to a buffer. When the next paragraph would push the
     buffer past ``target_size`` characters (and the buffer is non-empty),
     emit the buffer and seed the next one with its last ``overlap // 5``
     words followed by the new paragraph.
  3. A single paragraph longer than ``target_size`` is never split.
  4. The final non-empty buffer is emitted as the last chunk.

``overlap // 5`` is a word-count proxy for a character budget (about five
characters per word). It is approximate by intent.
"""

from __future__ import annotations

import re

from quarry.ingest.base import BaseChunker
from quarry.models import Chunk

_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n")
_WHITESPACE_RE = re.compile(r"\s+")

_CHARS_PER_WORD = 5


def split_paragraphs(text: str) -> list[str]:
    """Return the non-empty, whitespace-normalised paragraphs of *text*."""
    paragraphs: list[str] = []
    for raw in _PARAGRAPH_BREAK_RE.split(text):
        clean = _WHITESPACE_RE.sub(" ", raw).strip()
        if clean:
            paragraphs.append(clean)
    return paragraphs


def chunk_text(text: str, target_size: int = 500, overlap: int = 50) -> list[str]:
    """Split *text* into passage strings. See module docstring for the algorithm."""
    tail_words = overlap // _CHARS_PER_WORD
    chunks: list[str] = []
    current = ""

    for paragraph in split_paragraphs(text):
        if current and len(current) + len(paragraph) > target_size:
            chunks.append(current.strip())
            tail = current.split(" ")[-tail_words:] if tail_words else []
            current = " ".join([*tail, paragraph])
        else:
            current = f"{current} {paragraph}" if current else paragraph

    if current.strip():
        chunks.append(current.strip())

    return chunks


class ParagraphChunker(BaseChunker):
    """Paragraph-accumulating chunker.

    Default: 500 characters / 50 overlap (10 trailing words).
    """

    def chunk(self, source: str, text: str) -> list[Chunk]:
        if not text.strip():
            return []
        return self._make_chunks(source, chunk_text(text, self.target_size, self.overlap))
