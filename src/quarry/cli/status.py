"""quarry status: build the knowledge base and report its health.

Exit 0 whenever the base initializes, including the empty-corpus case
(reported as a warning). Provider and config errors exit 1.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.panel import Panel

from quarry.cli.errors import warn_empty_knowledge_base
from quarry.cli.runtime import console, handle_errors, open_knowledge_base, resolve_config
from quarry.config import QuarryConfig
from quarry.rag.knowledge_base import KnowledgeBase


def status_cmd(
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
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the health-check payload as JSON."),
    ] = False,
) -> None:
    """Build the knowledge base and show its status."""
    with handle_errors():
        cfg = resolve_config(project_dir, documents=documents, strategy=strategy)
        kb = open_knowledge_base(cfg)

    status = kb.status()
    if as_json:
        typer.echo(json.dumps(status.as_dict()))
        return

    _show_status_panel(kb, cfg)
    if status.entry_count == 0:
        console.print(warn_empty_knowledge_base(cfg.documents.path))


def _show_status_panel(kb: KnowledgeBase, cfg: QuarryConfig) -> None:
    status = kb.status()
    ready = "[green]✓ ready[/]" if status.initialized else "[yellow]✗ not initialized[/]"
    sources = sorted({e.source for e in kb.entries})

    lines = [
        f"Status:     {ready}",
        f"Entries:    [bold]{status.entry_count:,}[/]",
        f"Sources:    [bold]{len(sources)}[/]",
        f"Provider:   {kb.provider.name}",
        f"Documents:  {cfg.documents.path}",
    ]
    for source in sources:
        lines.append(f"  [dim]{source}[/]")

    console.print(Panel("\n".join(lines), title="[bold]Knowledge Base[/]", expand=False))
