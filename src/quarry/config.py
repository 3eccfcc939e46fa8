"""Quarry configuration loader.

Priority (high → low):
  1. CLI flags           (applied by the CLI after load_config)
  2. Environment variables  (QUARRY_EMBEDDING_STRATEGY, QUARRY_EMBEDDING_MODEL,
                             QUARRY_GENERATION_MODEL, QUARRY_DOCUMENTS)
  3. Per-project quarry.yaml
  4. Global ~/.quarry/config.yaml  (defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from quarry.errors import ConfigError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".quarry"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "quarry.yaml"

# Fields that suggest an API key; forbidden in global config.
# Does NOT match legitimate keys like max_tokens or top_k.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["documents", "chunking", "embedding", "retrieval", "generation"]
)

STRATEGIES: tuple[str, ...] = ("lexical", "local-neural", "remote-api")


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class DocumentsCfg:
    """Where the corpus lives (quarry.yaml: documents:)."""

    path: str = "data"
    comment_prefix: str = "#"


@dataclass
class ChunkingCfg:
    """Paragraph chunker settings (quarry.yaml: chunking:).

    Attributes:
        target_size: Soft upper bound on chunk length in characters.
        overlap: Overlap budget; ``overlap // 5`` trailing words are carried
            into the next chunk.
    """

    target_size: int = 500
    overlap: int = 50


@dataclass
class EmbeddingCfg:
    """Embedding provider selection (quarry.yaml: embedding:)."""

    strategy: str = "lexical"  # lexical | local-neural | remote-api
    vocabulary_cap: int = 5_000
    local_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    remote_model: str = "gemini/text-embedding-004"
    batch_size: int = 10
    timeout: float = 30.0
    num_retries: int = 3


@dataclass
class RetrievalCfg:
    """Retrieval settings (quarry.yaml: retrieval:)."""

    top_k: int = 3
    max_context_chars: int = 8_000


@dataclass
class GenerationCfg:
    """LLM generation configuration (quarry.yaml: generation:)."""

    model: str = "gemini/gemini-2.5-flash"
    max_tokens: int = 512
    temperature: float = 0.7


@dataclass
class QuarryConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    documents: DocumentsCfg = field(default_factory=DocumentsCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}'; ignored.",
                UserWarning,
                stacklevel=4,
            )


def validate(cfg: QuarryConfig) -> QuarryConfig:
    """Raise ConfigError if any value in *cfg* is out of range."""
    if cfg.embedding.strategy not in STRATEGIES:
        raise ConfigError(
            f"Unknown embedding strategy '{cfg.embedding.strategy}'. "
            f"Choose one of: {', '.join(STRATEGIES)}"
        )
    checks = [
        ("chunking.target_size", cfg.chunking.target_size, 1),
        ("chunking.overlap", cfg.chunking.overlap, 0),
        ("embedding.vocabulary_cap", cfg.embedding.vocabulary_cap, 1),
        ("embedding.batch_size", cfg.embedding.batch_size, 1),
        ("embedding.num_retries", cfg.embedding.num_retries, 0),
        ("retrieval.top_k", cfg.retrieval.top_k, 1),
        ("retrieval.max_context_chars", cfg.retrieval.max_context_chars, 1),
    ]
    for name, value, minimum in checks:
        if value < minimum:
            raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    if cfg.embedding.timeout <= 0:
        raise ConfigError(f"embedding.timeout must be > 0, got {cfg.embedding.timeout}")
    return cfg


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> QuarryConfig:
    """Build a *QuarryConfig* from a merged raw YAML dict."""
    cfg = QuarryConfig()

    try:
        if "documents" in data:
            d = data["documents"] or {}
            cfg.documents = DocumentsCfg(
                path=str(d.get("path", cfg.documents.path)),
                comment_prefix=str(d.get("comment_prefix", cfg.documents.comment_prefix)),
            )

        if "chunking" in data:
            c = data["chunking"] or {}
            cfg.chunking = ChunkingCfg(
                target_size=int(c.get("target_size", cfg.chunking.target_size)),
                overlap=int(c.get("overlap", cfg.chunking.overlap)),
            )

        if "embedding" in data:
            e = data["embedding"] or {}
            cfg.embedding = EmbeddingCfg(
                strategy=str(e.get("strategy", cfg.embedding.strategy)),
                vocabulary_cap=int(e.get("vocabulary_cap", cfg.embedding.vocabulary_cap)),
                local_model=str(e.get("local_model", cfg.embedding.local_model)),
                remote_model=str(e.get("remote_model", cfg.embedding.remote_model)),
                batch_size=int(e.get("batch_size", cfg.embedding.batch_size)),
                timeout=float(e.get("timeout", cfg.embedding.timeout)),
                num_retries=int(e.get("num_retries", cfg.embedding.num_retries)),
            )

        if "retrieval" in data:
            r = data["retrieval"] or {}
            cfg.retrieval = RetrievalCfg(
                top_k=int(r.get("top_k", cfg.retrieval.top_k)),
                max_context_chars=int(
                    r.get("max_context_chars", cfg.retrieval.max_context_chars)
                ),
            )

        if "generation" in data:
            g = data["generation"] or {}
            cfg.generation = GenerationCfg(
                model=str(g.get("model", cfg.generation.model)),
                max_tokens=int(g.get("max_tokens", cfg.generation.max_tokens)),
                temperature=float(g.get("temperature", cfg.generation.temperature)),
            )
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc

    return cfg


def _apply_env_overrides(cfg: QuarryConfig) -> QuarryConfig:
    """Apply QUARRY_* environment variable overrides."""
    if strategy := os.environ.get("QUARRY_EMBEDDING_STRATEGY"):
        cfg.embedding.strategy = strategy
    if model := os.environ.get("QUARRY_EMBEDDING_MODEL"):
        # Applies to whichever model-backed strategy is active.
        if cfg.embedding.strategy == "local-neural":
            cfg.embedding.local_model = model
        else:
            cfg.embedding.remote_model = model
    if model := os.environ.get("QUARRY_GENERATION_MODEL"):
        cfg.generation.model = model
    if documents := os.environ.get("QUARRY_DOCUMENTS"):
        cfg.documents.path = documents
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> QuarryConfig:
    """Load and return a merged, validated *QuarryConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *quarry.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields or any
            value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)
    cfg = _apply_env_overrides(cfg)
    return validate(cfg)


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.quarry/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# Quarry global configuration: defaults only.\n"
            "# NEVER store API keys here; use environment variables:\n"
            "#   export GEMINI_API_KEY=...\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "\n"
            "embedding:\n"
            "  strategy: lexical\n"
            "\n"
            "generation:\n"
            "  model: gemini/gemini-2.5-flash\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
