"""Shared fixtures for introspection tests."""

from collections.abc import Generator
from pathlib import Path

import pytest
from sqlalchemy import Engine, create_engine


@pytest.fixture(name="blog_engine")
def blog_database(tmp_path: Path) -> Generator[Engine]:
    """SQLite database holding every blog table."""
    from blog.models.base import Base  # noqa: PLC0415

    engine = create_engine(f"sqlite:///{tmp_path / 'blog.sqlite'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="faulty_engine")
def faulty_database(tmp_path: Path) -> Generator[Engine]:
    """SQLite database missing the ghosts table."""
    from faulty.models.base import Base  # noqa: PLC0415

    engine = create_engine(f"sqlite:///{tmp_path / 'faulty.sqlite'}")
    tables = [table for table in Base.metadata.sorted_tables if table.name != "ghosts"]
    Base.metadata.create_all(engine, tables=tables)
    yield engine
    engine.dispose()
