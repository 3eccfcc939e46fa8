"""Local neural embeddings via sentence-transformers.

The model is loaded once, on first use, and owned by the provider instance;
``close()`` drops the handle. Inference is mean-pooled and normalised
(``normalize_embeddings=True``), so vectors are unit length.

sentence-transformers is an optional dependency (``pip install quarry[local]``)
and is imported only when the model is first loaded.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import Any

from loguru import logger

from quarry.embed.base import EmbeddingProvider
from quarry.errors import ConfigError

DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"


def _load_sentence_transformer(model_name: str) -> Any:
    try:
        from sentence_transformers import SentenceTransformer
    except ImportError as exc:
        raise ConfigError(
            "The local-neural strategy needs sentence-transformers.\n"
            "  Install it with:  pip install 'quarry[local]'"
        ) from exc
    try:
        return SentenceTransformer(model_name)
    except OSError as exc:
        raise ConfigError(f"Could not load local embedding model '{model_name}': {exc}") from exc


class LocalEmbeddingProvider(EmbeddingProvider):
    """Sentence-embedding model running in-process.

    Args:
        model_name: Hugging Face model id or local path.
        batch_size: Encode batch size; affects speed only.
    """

    def __init__(self, model_name: str = DEFAULT_MODEL, batch_size: int = 32) -> None:
        self.model_name = model_name
        self.batch_size = batch_size
        self._model: Any = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return f"local-neural:{self.model_name}"

    @property
    def loaded(self) -> bool:
        return self._model is not None

    def _get_model(self) -> Any:
        if self._model is None:
            with self._lock:
                if self._model is None:
                    logger.info("Loading local embedding model {}", self.model_name)
                    self._model = _load_sentence_transformer(self.model_name)
        return self._model

    def embed(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        if not texts:
            return []
        vectors = self._get_model().encode(
            list(texts),
            batch_size=self.batch_size,
            show_progress_bar=False,
            convert_to_numpy=True,
            normalize_embeddings=True,
        )
        return [v.tolist() for v in vectors]

    def close(self) -> None:
        with self._lock:
            if self._model is not None:
                logger.debug("Releasing local embedding model {}", self.model_name)
            self._model = None
