"""Select the embedding provider named by ``embedding.strategy``."""

from __future__ import annotations

from loguru import logger

from quarry.config import STRATEGIES, EmbeddingCfg
from quarry.embed.base import EmbeddingProvider
from quarry.embed.lexical import LexicalEmbeddingProvider
from quarry.embed.local import LocalEmbeddingProvider
from quarry.embed.remote import RemoteEmbeddingProvider
from quarry.errors import ConfigError


def create_provider(cfg: EmbeddingCfg) -> EmbeddingProvider:
    """Build the provider for *cfg.strategy*.

    Raises:
        ConfigError: If the strategy is not one of ``STRATEGIES``.
    """
    if cfg.strategy == "lexical":
        provider: EmbeddingProvider = LexicalEmbeddingProvider(
            vocabulary_cap=cfg.vocabulary_cap
        )
    elif cfg.strategy == "local-neural":
        provider = LocalEmbeddingProvider(model_name=cfg.local_model)
    elif cfg.strategy == "remote-api":
        provider = RemoteEmbeddingProvider(
            model=cfg.remote_model,
            batch_size=cfg.batch_size,
            timeout=cfg.timeout,
            num_retries=cfg.num_retries,
        )
    else:
        raise ConfigError(
            f"Unknown embedding strategy '{cfg.strategy}'. "
            f"Choose one of: {', '.join(STRATEGIES)}"
        )

    logger.info("Embedding provider: {}", provider.name)
    return provider
