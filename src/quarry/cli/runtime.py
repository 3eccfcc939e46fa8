"""Shared command plumbing: config loading with CLI overrides, KB construction,
and mapping Quarry errors to actionable messages.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console

from quarry.cli.errors import err_config, err_dimension_mismatch, err_provider
from quarry.config import QuarryConfig, load_config, validate
from quarry.errors import ConfigError, DimensionMismatchError, ProviderError
from quarry.rag.knowledge_base import KnowledgeBase

console = Console()


@contextmanager
def handle_errors() -> Iterator[None]:
    """Print Quarry errors as actionable messages and exit 1."""
    try:
        yield
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc
    except DimensionMismatchError as exc:
        console.print(err_dimension_mismatch(str(exc)))
        raise typer.Exit(1) from exc
    except ProviderError as exc:
        console.print(err_provider(str(exc)))
        raise typer.Exit(1) from exc


def resolve_config(
    project_dir: Path | None,
    documents: Path | None = None,
    strategy: str | None = None,
    top_k: int | None = None,
) -> QuarryConfig:
    """Load layered config, then apply CLI flag overrides (highest priority)."""
    cfg = load_config(project_dir)
    if documents is not None:
        cfg.documents.path = str(documents)
    if strategy is not None:
        cfg.embedding.strategy = strategy
    if top_k is not None:
        cfg.retrieval.top_k = top_k
    return validate(cfg)


def open_knowledge_base(cfg: QuarryConfig) -> KnowledgeBase:
    """Construct and initialize the knowledge base described by *cfg*."""
    kb = KnowledgeBase.from_config(cfg)
    with console.status("Building knowledge base…"):
        kb.initialize()
    return kb
