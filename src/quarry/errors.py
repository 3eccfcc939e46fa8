"""Quarry exception hierarchy.

  QuarryError              base for everything raised by this package
  ├── ConfigError          invalid config, missing credentials or model library (fatal)
  ├── ProviderError        embedding provider failed (network/API, used before fit)
  └── DimensionMismatchError  vectors of different length compared (fatal)

Degenerate ingestion (missing documents, zero chunks) is not an error: the
knowledge base settles into an empty-but-initialized state.
"""

from __future__ import annotations


class QuarryError(Exception):
    """Base class for all Quarry errors."""


class ConfigError(QuarryError, ValueError):
    """Raised when configuration is invalid, forbidden, or incomplete."""


class ProviderError(QuarryError):
    """Raised when an embedding provider cannot produce a vector.

    The underlying library exception, if any, is chained as ``__cause__``.
    """

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"[{provider}] {message}")
        self.provider = provider


class DimensionMismatchError(QuarryError, ValueError):
    """Raised when two vectors of different length are compared."""

    def __init__(self, left: int, right: int) -> None:
        super().__init__(
            f"Vector dimension mismatch: {left} != {right}. "
            "The knowledge base was embedded with a different provider than the query."
        )
        self.left = left
        self.right = right
