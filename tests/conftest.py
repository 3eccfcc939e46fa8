"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from quarry.embed.base import EmbeddingProvider


class StubProvider(EmbeddingProvider):
    """Deterministic provider: vector = [len(text), count of 'a', 1.0]."""

    def __init__(self) -> None:
        self.fit_calls = 0
        self.batch_calls = 0

    @property
    def name(self) -> str:
        return "stub"

    def fit(self, corpus: Sequence[str]) -> None:
        self.fit_calls += 1

    def embed(self, text: str) -> list[float]:
        return [float(len(text)), float(text.count("a")), 1.0]

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        self.batch_calls += 1
        return [self.embed(t) for t in texts]


@pytest.fixture
def stub_provider() -> StubProvider:
    return StubProvider()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the real ~/.quarry/config.yaml and QUARRY_* env vars."""
    monkeypatch.setattr(
        "quarry.config._GLOBAL_CONFIG_PATH", tmp_path / "global" / "config.yaml"
    )
    for var in (
        "QUARRY_EMBEDDING_STRATEGY",
        "QUARRY_EMBEDDING_MODEL",
        "QUARRY_GENERATION_MODEL",
        "QUARRY_DOCUMENTS",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def corpus_dir(tmp_path) -> Path:
    """Directory with one real document and one empty document."""
    root = tmp_path / "data"
    root.mkdir()
    (root / "a.txt").write_text("Hello world. More text here.", encoding="utf-8")
    (root / "b.txt").write_text("", encoding="utf-8")
    return root
