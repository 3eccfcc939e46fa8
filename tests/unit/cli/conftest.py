"""CLI test fixtures."""

from __future__ import annotations

import sys

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    # The CLI points loguru at the runner's stderr; hand it back afterwards.
    logger.remove()
    logger.add(sys.stderr)
