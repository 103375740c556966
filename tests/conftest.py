from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.corpus_builder import CorpusBuilder


@pytest.fixture
def corpus_builder(tmp_path: Path) -> CorpusBuilder:
    """Provide a reusable corpus builder rooted at the pytest tmp_path."""
    return CorpusBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_bluesand_logging() -> Iterator[None]:
    # CLI tests bind handlers to capsys streams that are closed afterwards.
    yield
    logger = logging.getLogger("bluesand")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
