from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.fake_renderer import FakeRenderer
from tests._fixtures.source_tree import SourceTreeBuilder


@pytest.fixture(autouse=True)
def _propagating_logger() -> Iterator[None]:
    """Keep flowdoc records visible to caplog even after the CLI configured logging."""
    logger = logging.getLogger("flowdoc")
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def source_tree(tmp_path: Path) -> SourceTreeBuilder:
    """Provide a reusable source tree builder rooted at the pytest tmp_path."""
    return SourceTreeBuilder(tmp_path)


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()
