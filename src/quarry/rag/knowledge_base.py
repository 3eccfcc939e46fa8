"""In-memory knowledge base: documents → chunks → vectors, built once.

Lifecycle:
  - starts uninitialized and empty
  - ``initialize()`` loads documents, strips comment lines, chunks each
    document independently, fits the provider on all chunk texts, embeds
    them and stores one Entry per chunk (id ``"{source}-{chunk_index}"``)
  - a second ``initialize()`` is a no-op
  - an empty corpus settles into initialized-with-zero-entries, not an error
  - a failed build leaves the base uninitialized so the next call retries

``initialize()`` is single-flight: the first caller performs the build and
concurrent callers block on the same Future, receiving its status or its
exception. Entries are never mutated after the build, so reads take no lock.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Future

from loguru import logger

from quarry.config import QuarryConfig
from quarry.embed.base import EmbeddingProvider
from quarry.embed.factory import create_provider
from quarry.errors import DimensionMismatchError
from quarry.ingest.base import BaseChunker
from quarry.ingest.paragraph import ParagraphChunker
from quarry.ingest.sources import DocumentLoader, strip_comment_lines
from quarry.models import Chunk, Document, Entry, KnowledgeBaseStatus


class KnowledgeBase:
    """Process-lifetime collection of embedded chunks.

    Args:
        provider: The one embedding provider used for ingestion and queries.
        loader: Zero-argument callable returning the corpus documents.
        chunker: Chunker applied per document (default ``ParagraphChunker()``).
        comment_prefix: Lines starting with this marker are dropped before
            chunking. Empty string disables stripping.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        loader: Callable[[], list[Document]],
        chunker: BaseChunker | None = None,
        comment_prefix: str = "#",
    ) -> None:
        self._provider = provider
        self._loader = loader
        self._chunker = chunker or ParagraphChunker()
        self._comment_prefix = comment_prefix

        self._entries: tuple[Entry, ...] = ()
        self._initialized = False
        self._lock = threading.Lock()
        self._inflight: Future[KnowledgeBaseStatus] | None = None

    @classmethod
    def from_config(cls, cfg: QuarryConfig) -> KnowledgeBase:
        """Wire provider, loader and chunker from a loaded configuration."""
        return cls(
            provider=create_provider(cfg.embedding),
            loader=DocumentLoader(cfg.documents.path),
            chunker=ParagraphChunker(
                target_size=cfg.chunking.target_size,
                overlap=cfg.chunking.overlap,
            ),
            comment_prefix=cfg.documents.comment_prefix,
        )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def provider(self) -> EmbeddingProvider:
        return self._provider

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def entries(self) -> tuple[Entry, ...]:
        return self._entries

    def status(self) -> KnowledgeBaseStatus:
        return KnowledgeBaseStatus(initialized=self._initialized, entry_count=len(self._entries))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, timeout: float | None = None) -> KnowledgeBaseStatus:
        """Build the knowledge base once; later and concurrent calls share the result.

        Args:
            timeout: Seconds a caller waits for a build started by another
                caller. The build itself is not interrupted.

        Raises:
            concurrent.futures.TimeoutError: If *timeout* expires while waiting.
            ProviderError / ConfigError: Propagated from the embedding provider.
        """
        with self._lock:
            if self._initialized:
                return self.status()
            if self._inflight is not None:
                future = self._inflight
                owner = False
            else:
                future = self._inflight = Future()
                owner = True

        if not owner:
            logger.debug("Knowledge base build in progress; waiting")
            return future.result(timeout=timeout)

        try:
            entries = self._build()
        except BaseException as exc:
            with self._lock:
                self._inflight = None
            future.set_exception(exc)
            raise

        with self._lock:
            self._entries = tuple(entries)
            self._initialized = True
            self._inflight = None
            status = self.status()
        future.set_result(status)
        return status

    def reset(self) -> None:
        """Drop all entries so the next ``initialize()`` rebuilds from the source.

        Raises:
            RuntimeError: If a build is in progress.
        """
        with self._lock:
            if self._inflight is not None:
                raise RuntimeError("Cannot reset the knowledge base while it is being built")
            self._entries = ()
            self._initialized = False
        logger.info("Knowledge base reset")

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def _chunk_documents(self, documents: list[Document]) -> list[Chunk]:
        chunks: list[Chunk] = []
        for doc in documents:
            text = strip_comment_lines(doc.text, self._comment_prefix)
            doc_chunks = self._chunker.chunk(doc.source, text)
            if not doc_chunks:
                logger.warning("No content in {}; skipped", doc.source)
            chunks.extend(doc_chunks)
        return chunks

    def _build(self) -> list[Entry]:
        logger.info("Initializing knowledge base ({})", self._provider.name)

        documents = self._loader()
        chunks = self._chunk_documents(documents)
        logger.info("Created {} chunks from {} document(s)", len(chunks), len(documents))

        if not chunks:
            logger.warning("Knowledge base is empty: no chunks were produced")
            return []

        texts = [c.content for c in chunks]
        self._provider.fit(texts)
        vectors = self._provider.embed_batch(texts)

        lengths = {len(v) for v in vectors}
        if len(lengths) > 1:
            raise DimensionMismatchError(min(lengths), max(lengths))

        entries = [Entry.from_chunk(c, v) for c, v in zip(chunks, vectors)]
        logger.info("Knowledge base initialized with {} entries", len(entries))
        return entries
