"""Quarry ingest pipeline: chunkers and document loading."""

from quarry.ingest.base import BaseChunker
from quarry.ingest.paragraph import ParagraphChunker, chunk_text
from quarry.ingest.sources import DocumentLoader, load_documents, strip_comment_lines

__all__ = [
    "BaseChunker",
    "DocumentLoader",
    "ParagraphChunker",
    "chunk_text",
    "load_documents",
    "strip_comment_lines",
]
