"""Quarry embedding providers: lexical, local neural, remote API."""

from quarry.embed.base import EmbeddingProvider
from quarry.embed.factory import create_provider
from quarry.embed.lexical import LexicalEmbeddingProvider
from quarry.embed.local import LocalEmbeddingProvider
from quarry.embed.remote import RemoteEmbeddingProvider

__all__ = [
    "EmbeddingProvider",
    "LexicalEmbeddingProvider",
    "LocalEmbeddingProvider",
    "RemoteEmbeddingProvider",
    "create_provider",
]
