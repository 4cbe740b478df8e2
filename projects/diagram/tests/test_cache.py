"""Tests for the result cache adapters."""

from pathlib import Path

import pytest
from typing import Any

from sqlalchemy import create_engine, event, inspect

from diagram import DatabaseCache, ErdConfig, MemoryCache, create_cache
from diagram.cache import cache_key


class FakeClock:
    """Clock advanced by hand."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture(name="clock")
def fake_clock() -> FakeClock:
    """A clock starting at a fixed time."""
    return FakeClock()


@pytest.fixture(name="database_cache")
def sqlite_cache(tmp_path: Path, clock: FakeClock) -> DatabaseCache:
    """Database cache in a temporary SQLite file."""
    engine = create_engine(f"sqlite:///{tmp_path / 'cache.sqlite'}")
    return DatabaseCache(engine, clock=clock)


def test_cache_key() -> None:
    """Test key layout with and without a model identifier."""
    assert cache_key("erd_data", "complete_graph") == "erd_data_complete_graph"
    assert (
        cache_key("erd_data", "relationships", "app.models.User")
        == "erd_data_relationships_app.models.User"
    )


def test_memory_cache_expires(clock: FakeClock) -> None:
    """Test that entries live exactly ttl seconds."""
    cache = MemoryCache(clock=clock)
    cache.put("key", {"a": [1, 2]}, ttl=60)

    clock.now += 59
    assert cache.get("key") == {"a": [1, 2]}

    clock.now += 1
    assert cache.get("key") is None
    assert len(cache) == 0


def test_memory_cache_returns_copies() -> None:
    """Test that mutating a returned value leaves the cache untouched."""
    cache = MemoryCache()
    value = {"tables": []}
    cache.put("key", value, ttl=60)

    value["tables"].append("x")
    cache.get("key")["tables"].append("y")

    assert cache.get("key") == {"tables": []}


def test_memory_cache_forget() -> None:
    """Test removal of present and absent keys."""
    cache = MemoryCache()
    cache.put("key", 1, ttl=60)

    cache.forget("key")
    cache.forget("missing")

    assert cache.get("key") is None


def test_database_cache_round_trip(database_cache: DatabaseCache) -> None:
    """Test storing, overwriting and forgetting values."""
    database_cache.put("key", ["a"], ttl=60)
    database_cache.put("key", ["b"], ttl=60)

    assert database_cache.get("key") == ["b"]

    database_cache.forget("key")
    assert database_cache.get("key") is None


def test_database_cache_expires(
    database_cache: DatabaseCache,
    clock: FakeClock,
) -> None:
    """Test that expired rows are not served."""
    database_cache.put("key", {"x": 1}, ttl=10)

    clock.now += 10

    assert database_cache.get("key") is None


def test_database_cache_is_shared(tmp_path: Path) -> None:
    """Test that two caches on one database see each other's values."""
    url = f"sqlite:///{tmp_path / 'shared.sqlite'}"
    writer = DatabaseCache(create_engine(url))
    reader = DatabaseCache(create_engine(url))

    writer.put("erd_data_complete_graph", {"tables": []}, ttl=60)

    assert reader.get("erd_data_complete_graph") == {"tables": []}


def test_database_cache_concurrent_insert(tmp_path: Path) -> None:
    """Test that losing an insert race overwrites the other writer."""
    url = f"sqlite:///{tmp_path / 'race.sqlite'}"
    engine = create_engine(url)
    ours = DatabaseCache(engine)
    theirs = DatabaseCache(create_engine(url))
    raced: list[str] = []

    @event.listens_for(engine, "before_cursor_execute")
    def insert_first(*args: Any) -> None:  # noqa: ANN401
        statement = args[2]
        if statement.startswith("INSERT") and not raced:
            raced.append(statement)
            theirs.put("key", "theirs", ttl=60)

    ours.put("key", "ours", ttl=60)

    assert raced
    assert theirs.get("key") == "ours"


def test_create_cache(tmp_path: Path) -> None:
    """Test selection of the cache backend from configuration."""
    url = f"sqlite:///{tmp_path / 'erd.sqlite'}"

    assert isinstance(create_cache(ErdConfig()), MemoryCache)

    cache = create_cache(ErdConfig(cache_store="database", cache_url=url))
    assert isinstance(cache, DatabaseCache)
    assert inspect(cache.engine).has_table("erd_cache")
