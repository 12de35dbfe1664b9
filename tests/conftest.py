"""Shared pytest fixtures."""

from __future__ import annotations

import random
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from patent_query.store.repository import EntityRepository
from patent_query.store.tokens import TokenGenerator

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    path = Path(tempfile.mkdtemp())
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def sample_config(temp_dir: Path) -> Path:
    """Create a sample config file."""
    config_path = temp_dir / "config.toml"
    config_path.write_text("""[store]
max_entities_per_kind = 5
token_length = 6

[display]
colored_output = false

[import]
expand_variants = false

[output]
format = "json"
""")
    return config_path


@pytest.fixture
def repo() -> EntityRepository:
    """Empty repository with a seeded token generator."""
    return EntityRepository(token_generator=TokenGenerator(rng=random.Random(1234)))
