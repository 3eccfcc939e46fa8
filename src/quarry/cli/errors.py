"""Quarry rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from quarry.cli.errors import err_no_api_key
    console.print(err_no_api_key("gemini"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'gemini'. Set:  export GEMINI_API_KEY=...
    """
    env_map = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "cohere": "COHERE_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{escape(provider)}'.\n"
        f"  Set:  export {env_var}=..."
    )


def err_config(message: str) -> str:
    """Configuration is invalid (bad value, forbidden key, unknown strategy)."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {escape(message)}\n"
        "  Fix quarry.yaml or the QUARRY_* environment variables and retry."
    )


def err_provider(message: str) -> str:
    """Embedding provider failed after retries."""
    return (
        f"[red]Error:[/] Embedding failed.\n"
        f"  {escape(message)}\n"
        "  Check network access and provider quota, or switch strategy:\n"
        "    quarry status --strategy lexical"
    )


def err_dimension_mismatch(message: str) -> str:
    """Query and corpus vectors came from different providers."""
    return (
        f"[red]Error:[/] Embedding dimension mismatch.\n"
        f"  {escape(message)}\n"
        "  Use the same embedding strategy and model for ingestion and queries."
    )


def warn_empty_knowledge_base(documents: str) -> str:
    """Knowledge base built but holds no entries."""
    return (
        f"[yellow]Warning:[/] Knowledge base is empty: no text found at '{escape(documents)}'.\n"
        "  Add .txt, .md or .pdf files there, or point to another location:\n"
        "    quarry status --documents <path>"
    )


def err_generation(message: str) -> str:
    """Generation model call failed after retries."""
    return (
        f"[red]Error:[/] Answer generation failed.\n"
        f"  {escape(message)}\n"
        "  Check the model name and provider status, or retry later."
    )
