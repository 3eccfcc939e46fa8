"""Tests for the knowledge base lifecycle and single-flight initialization."""

from __future__ import annotations

import concurrent.futures
import threading
from collections.abc import Sequence
from unittest.mock import MagicMock

import pytest

from quarry.config import QuarryConfig
from quarry.embed.base import EmbeddingProvider
from quarry.embed.lexical import LexicalEmbeddingProvider
from quarry.errors import DimensionMismatchError, ProviderError
from quarry.ingest.paragraph import ParagraphChunker
from quarry.ingest.sources import DocumentLoader
from quarry.models import Document, KnowledgeBaseStatus
from quarry.rag.knowledge_base import KnowledgeBase
from quarry.rag.retriever import search


def _loader(*docs: Document) -> MagicMock:
    return MagicMock(return_value=list(docs))


class _BlockingProvider(EmbeddingProvider):
    """Blocks inside embed_batch until released; optionally fails afterwards."""

    def __init__(self, fail: bool = False) -> None:
        self.batch_calls = 0
        self.started = threading.Event()
        self.release = threading.Event()
        self.fail = fail

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        self.started.set()
        self.release.wait(timeout=5)
        if self.fail:
            raise ProviderError(self.name, "boom")
        self.batch_calls += 1
        return [self.embed(t) for t in texts]

    @property
    def name(self) -> str:
        return "blocking"

    def embed(self, text: str) -> list[float]:
        return [float(len(text)), 1.0]


# ------------------------------------------------------------------
# Initial state and status
# ------------------------------------------------------------------


def test_starts_uninitialized(stub_provider):
    kb = KnowledgeBase(stub_provider, _loader())
    assert kb.status() == KnowledgeBaseStatus(initialized=False, entry_count=0)
    assert kb.entries == ()


def test_status_as_dict():
    assert KnowledgeBaseStatus(True, 4).as_dict() == {"initialized": True, "entryCount": 4}


# ------------------------------------------------------------------
# Build
# ------------------------------------------------------------------


def test_initialize_builds_entries(stub_provider):
    loader = _loader(Document("a.txt", "Hello world. More text here."))
    kb = KnowledgeBase(stub_provider, loader)

    status = kb.initialize()

    assert status == KnowledgeBaseStatus(initialized=True, entry_count=1)
    entry = kb.entries[0]
    assert entry.id == "a.txt-0"
    assert entry.content == "Hello world. More text here."
    assert entry.metadata == {"source": "a.txt", "chunkIndex": 0}
    assert entry.embedding == stub_provider.embed(entry.content)


def test_empty_document_contributes_no_chunks(stub_provider):
    loader = _loader(Document("a.txt", "Hello world. More text here."), Document("b.txt", ""))
    kb = KnowledgeBase(stub_provider, loader)
    status = kb.initialize()
    assert status.entry_count >= 1
    assert {e.source for e in kb.entries} == {"a.txt"}


def test_chunk_index_resets_per_source(stub_provider):
    long_a = "\n\n".join(["alpha " * 10] * 3)
    loader = _loader(Document("a.txt", long_a), Document("b.txt", "beta"))
    kb = KnowledgeBase(stub_provider, loader, chunker=ParagraphChunker(target_size=70, overlap=0))
    kb.initialize()

    ids = [e.id for e in kb.entries]
    assert ids == ["a.txt-0", "a.txt-1", "a.txt-2", "b.txt-0"]


def test_comment_lines_stripped(stub_provider):
    text = "# Knowledge base v2\n# maintained by ops\nReal content here.\n   # trailing note"
    kb = KnowledgeBase(stub_provider, _loader(Document("kb.txt", text)))
    kb.initialize()
    assert [e.content for e in kb.entries] == ["Real content here."]


def test_only_comments_yields_empty_initialized(stub_provider):
    kb = KnowledgeBase(stub_provider, _loader(Document("kb.txt", "# one\n# two")))
    assert kb.initialize() == KnowledgeBaseStatus(initialized=True, entry_count=0)
    assert stub_provider.batch_calls == 0


def test_punctuation_only_document_settles_initialized():
    kb = KnowledgeBase(LexicalEmbeddingProvider(), _loader(Document("hr.md", "---\n\n***")))

    status = kb.initialize()

    assert status.initialized
    assert all(e.embedding == [] for e in kb.entries)
    assert search("anything", kb)[0].score == 0.0


def test_no_documents_yields_empty_initialized(stub_provider):
    kb = KnowledgeBase(stub_provider, _loader())
    assert kb.initialize() == KnowledgeBaseStatus(initialized=True, entry_count=0)


def test_provider_fitted_on_all_chunks_before_embedding():
    provider = LexicalEmbeddingProvider()
    loader = _loader(Document("a.txt", "apple banana"), Document("b.txt", "cherry"))
    kb = KnowledgeBase(provider, loader)
    kb.initialize()
    assert provider.vocabulary == ["apple", "banana", "cherry"]
    assert all(len(e.embedding) == 3 for e in kb.entries)


def test_inconsistent_vector_lengths_rejected():
    provider = MagicMock()
    provider.name = "broken"
    provider.embed_batch.return_value = [[1.0, 2.0], [1.0]]
    loader = _loader(Document("a.txt", "one"), Document("b.txt", "two"))
    kb = KnowledgeBase(provider, loader)
    with pytest.raises(DimensionMismatchError):
        kb.initialize()
    assert not kb.initialized


# ------------------------------------------------------------------
# Idempotence and single flight
# ------------------------------------------------------------------


def test_initialize_twice_ingests_once(stub_provider):
    loader = _loader(Document("a.txt", "some text"))
    kb = KnowledgeBase(stub_provider, loader)

    first = kb.initialize()
    second = kb.initialize()

    assert first == second
    assert loader.call_count == 1
    assert stub_provider.batch_calls == 1


def test_concurrent_initialize_builds_once():
    provider = _BlockingProvider()
    loader = _loader(Document("a.txt", "shared text"))
    kb = KnowledgeBase(provider, loader)
    statuses: list[KnowledgeBaseStatus] = []

    def run() -> None:
        statuses.append(kb.initialize(timeout=5))

    threads = [threading.Thread(target=run) for _ in range(6)]
    threads[0].start()
    assert provider.started.wait(timeout=5)
    for t in threads[1:]:
        t.start()
    provider.release.set()
    for t in threads:
        t.join(timeout=5)

    assert loader.call_count == 1
    assert provider.batch_calls == 1
    assert statuses == [KnowledgeBaseStatus(initialized=True, entry_count=1)] * 6


def test_waiter_times_out_while_build_continues():
    provider = _BlockingProvider()
    kb = KnowledgeBase(provider, _loader(Document("a.txt", "text")))

    owner = threading.Thread(target=kb.initialize)
    owner.start()
    assert provider.started.wait(timeout=5)

    with pytest.raises(concurrent.futures.TimeoutError):
        kb.initialize(timeout=0.01)

    provider.release.set()
    owner.join(timeout=5)
    assert kb.status().initialized


def test_failed_build_propagates_to_all_callers_and_can_retry():
    provider = _BlockingProvider(fail=True)
    loader = _loader(Document("a.txt", "text"))
    kb = KnowledgeBase(provider, loader)
    errors: list[Exception] = []

    def run() -> None:
        try:
            kb.initialize(timeout=5)
        except ProviderError as exc:
            errors.append(exc)

    owner = threading.Thread(target=run)
    owner.start()
    assert provider.started.wait(timeout=5)
    waiter = threading.Thread(target=run)
    waiter.start()
    provider.release.set()
    owner.join(timeout=5)
    waiter.join(timeout=5)

    assert len(errors) == 2
    assert not kb.initialized

    provider.fail = False
    assert kb.initialize().entry_count == 1


# ------------------------------------------------------------------
# Reset
# ------------------------------------------------------------------


def test_reset_forces_rebuild(stub_provider):
    loader = _loader(Document("a.txt", "text"))
    kb = KnowledgeBase(stub_provider, loader)
    kb.initialize()

    kb.reset()
    assert kb.status() == KnowledgeBaseStatus(initialized=False, entry_count=0)

    kb.initialize()
    assert loader.call_count == 2


def test_reset_during_build_raises():
    provider = _BlockingProvider()
    kb = KnowledgeBase(provider, _loader(Document("a.txt", "text")))
    owner = threading.Thread(target=kb.initialize)
    owner.start()
    assert provider.started.wait(timeout=5)

    with pytest.raises(RuntimeError, match="being built"):
        kb.reset()

    provider.release.set()
    owner.join(timeout=5)


# ------------------------------------------------------------------
# from_config
# ------------------------------------------------------------------


def test_from_config_wires_components(tmp_path):
    cfg = QuarryConfig()
    cfg.documents.path = str(tmp_path)
    cfg.chunking.target_size = 123
    cfg.chunking.overlap = 20

    kb = KnowledgeBase.from_config(cfg)

    assert isinstance(kb.provider, LexicalEmbeddingProvider)
    assert isinstance(kb._loader, DocumentLoader)
    assert kb._loader.path == tmp_path
    assert kb._chunker.target_size == 123
    assert kb._chunker.overlap == 20


def test_from_config_end_to_end(corpus_dir):
    cfg = QuarryConfig()
    cfg.documents.path = str(corpus_dir)
    kb = KnowledgeBase.from_config(cfg)
    assert kb.initialize() == KnowledgeBaseStatus(initialized=True, entry_count=1)
