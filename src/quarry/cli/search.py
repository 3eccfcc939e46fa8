"""quarry search: rank knowledge-base passages for a query."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from quarry.cli.runtime import console, handle_errors, open_knowledge_base, resolve_config
from quarry.models import QueryResult
from quarry.rag.retriever import search

_PREVIEW_CHARS = 80


def search_cmd(
    query: Annotated[str, typer.Argument(help="Text to search for.")],
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", min=1, help="Number of results (default from config)."),
    ] = None,
    documents: Annotated[
        Path | None,
        typer.Option("--documents", "-d", help="Corpus file or directory (overrides config)."),
    ] = None,
    strategy: Annotated[
        str | None,
        typer.Option("--strategy", help="Embedding strategy: lexical | local-neural | remote-api."),
    ] = None,
    project_dir: Annotated[
        Path | None,
        typer.Option("--project-dir", help="Directory containing quarry.yaml (default: CWD)."),
    ] = None,
) -> None:
    """Show the passages most similar to QUERY."""
    with handle_errors():
        cfg = resolve_config(project_dir, documents=documents, strategy=strategy, top_k=top_k)
        kb = open_knowledge_base(cfg)
        results = search(query, kb, top_k=cfg.retrieval.top_k)

    if not results:
        console.print("[yellow]No results.[/] The knowledge base is empty.")
        return

    console.print(_results_table(results))


def _results_table(results: list[QueryResult]) -> Table:
    table = Table(title="Results", show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Id")
    table.add_column("Passage")

    for rank, r in enumerate(results, start=1):
        preview = r.entry.content[:_PREVIEW_CHARS]
        if len(r.entry.content) > _PREVIEW_CHARS:
            preview += "…"
        table.add_row(str(rank), f"{r.score:.3f}", escape(r.entry.id), escape(preview))
    return table
