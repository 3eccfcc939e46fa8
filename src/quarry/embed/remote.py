"""Remote embeddings: hosted embedding endpoint through LiteLLM.

Texts are sent in batches of at most ``batch_size`` (default 10) to stay
under provider rate limits. Each call carries ``timeout`` and LiteLLM's
built-in retry with exponential backoff (``num_retries``). A failure that
survives the retries is raised as ProviderError; nothing is cached locally.
"""

from __future__ import annotations

from collections.abc import Sequence

import litellm
from loguru import logger

from quarry.embed.base import EmbeddingProvider
from quarry.errors import ConfigError, ProviderError
from quarry.rag.llm_client import validate_api_key

DEFAULT_MODEL = "gemini/text-embedding-004"


class RemoteEmbeddingProvider(EmbeddingProvider):
    """Embeddings from a hosted API (any LiteLLM ``provider/model`` string).

    Args:
        model: LiteLLM embedding model string.
        batch_size: Maximum texts per request.
        timeout: Per-request deadline in seconds.
        num_retries: Retries on transient errors (exponential backoff).
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        batch_size: int = 10,
        timeout: float = 30.0,
        num_retries: int = 3,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.model = model
        self.batch_size = batch_size
        self.timeout = timeout
        self.num_retries = num_retries
        self._key_checked = False

    @property
    def name(self) -> str:
        return f"remote-api:{self.model}"

    def embed(self, text: str) -> list[float]:
        return self._request([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = list(texts[start : start + self.batch_size])
            logger.debug(
                "Embedding batch {}-{} of {}", start + 1, start + len(batch), len(texts)
            )
            vectors.extend(self._request(batch))
        return vectors

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_api_key(self) -> None:
        if self._key_checked:
            return
        try:
            validate_api_key(self.model)
        except EnvironmentError as exc:
            raise ConfigError(str(exc)) from exc
        self._key_checked = True

    def _request(self, batch: list[str]) -> list[list[float]]:
        self._check_api_key()
        try:
            response = litellm.embedding(
                model=self.model,
                input=batch,
                timeout=self.timeout,
                num_retries=self.num_retries,
            )
        except Exception as exc:
            raise ProviderError(self.name, f"embedding request failed: {exc}") from exc

        vectors = [item["embedding"] for item in response.data]
        if len(vectors) != len(batch):
            raise ProviderError(
                self.name, f"expected {len(batch)} embeddings, got {len(vectors)}"
            )
        return vectors
