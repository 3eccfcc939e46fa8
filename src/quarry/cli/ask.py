"""quarry ask: retrieve context and answer a question with the generation model.

Pipeline:
  1. Validate the generation API key (fail before any embedding work).
  2. Build the knowledge base and retrieve top-K passages.
  3. Assemble the context, capped at retrieval.max_context_chars.
  4. Call the generation model; print the answer, language and sources.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from quarry.cli.errors import err_generation, err_no_api_key
from quarry.cli.runtime import console, handle_errors, open_knowledge_base, resolve_config
from quarry.models import ChatReply
from quarry.rag.assembler import assemble
from quarry.rag.llm_client import chat, provider_of, validate_api_key
from quarry.rag.retriever import search


def ask_cmd(
    question: Annotated[str, typer.Argument(help="Question to answer from the knowledge base.")],
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="LiteLLM generation model (overrides config)."),
    ] = None,
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", min=1, help="Passages to retrieve (default from config)."),
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
    """Answer QUESTION using passages retrieved from the knowledge base."""
    with handle_errors():
        cfg = resolve_config(project_dir, documents=documents, strategy=strategy, top_k=top_k)
    generation_model = model or cfg.generation.model

    try:
        validate_api_key(generation_model)
    except EnvironmentError:
        console.print(err_no_api_key(provider_of(generation_model)))
        raise typer.Exit(1)

    with handle_errors():
        kb = open_knowledge_base(cfg)
        results = search(question, kb, top_k=cfg.retrieval.top_k)

    assembled = assemble(results, max_chars=cfg.retrieval.max_context_chars)

    try:
        with console.status("Generating answer…"):
            text, language = chat(
                question,
                assembled.context,
                model=generation_model,
                max_tokens=cfg.generation.max_tokens,
                temperature=cfg.generation.temperature,
            )
    except Exception as exc:
        console.print(err_generation(str(exc)))
        raise typer.Exit(1) from exc

    _show_reply(ChatReply(text=text, language=language, sources=assembled.sources))


def _show_reply(reply: ChatReply) -> None:
    console.print(escape(reply.text))
    console.print(f"\n[dim]Language: {reply.language}[/]")
    if reply.sources:
        console.print(f"[dim]Sources: {escape(', '.join(sorted(reply.sources)))}[/]")
