"""Domain models shared by the ingest, embedding and retrieval layers."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Document:
    source: str
    text: str


@dataclass(frozen=True)
class Chunk:
    content: str
    source: str
    index: int  # zero-based, resets per source


@dataclass(frozen=True)
class Entry:
    id: str
    content: str
    embedding: list[float] = field(repr=False, hash=False, compare=False)
    source: str = ""
    chunk_index: int = 0

    @classmethod
    def from_chunk(cls, chunk: Chunk, embedding: list[float]) -> Entry:
        return cls(
            id=entry_id(chunk.source, chunk.index),
            content=chunk.content,
            embedding=embedding,
            source=chunk.source,
            chunk_index=chunk.index,
        )

    @property
    def metadata(self) -> dict:
        return {"source": self.source, "chunkIndex": self.chunk_index}


@dataclass
class QueryResult:
    entry: Entry
    score: float


@dataclass(frozen=True)
class KnowledgeBaseStatus:
    initialized: bool
    entry_count: int

    def as_dict(self) -> dict:
        return {"initialized": self.initialized, "entryCount": self.entry_count}


@dataclass
class AssembledContext:
    context: str = ""
    sources: set[str] = field(default_factory=set)


@dataclass(frozen=True)
class LanguageResult:
    primary: str


@dataclass
class ChatReply:
    text: str
    language: str
    sources: set[str] = field(default_factory=set)


def entry_id(source: str, chunk_index: int) -> str:
    """Deterministic entry id, stable across rebuilds of the same corpus."""
    return f"{source}-{chunk_index}"
