"""Result caches for the introspection phases."""

from __future__ import annotations

from json import dumps, loads
from logging import getLogger
from time import monotonic, time
from typing import TYPE_CHECKING, Any, Protocol

from sqlalchemy import (
    Column,
    Float,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import Engine

    from diagram.config import ErdConfig

logger = getLogger(__name__)


class ResultCache(Protocol):
    """Key-value store with per-entry time-to-live."""

    def get(self, key: str) -> Any | None:  # noqa: ANN401
        """Return the stored value, None when missing or expired."""
        ...

    def put(self, key: str, value: Any, ttl: int) -> None:  # noqa: ANN401
        """Store a JSON-serializable value for ttl seconds."""
        ...

    def forget(self, key: str) -> None:
        """Remove a stored value."""
        ...


def cache_key(prefix: str, phase: str, identifier: str | None = None) -> str:
    """Build a cache key as {prefix}_{phase}[_{identifier}]."""
    parts = (prefix, phase) if identifier is None else (prefix, phase, identifier)
    return "_".join(parts)


class MemoryCache:
    """In-process cache; values are stored as JSON so callers get copies."""

    def __init__(self, clock: Callable[[], float] = monotonic) -> None:
        """Initialize an empty cache with the clock used for expiry."""
        self._clock = clock
        self._entries: dict[str, tuple[float, str]] = {}

    def get(self, key: str) -> Any | None:  # noqa: ANN401
        """Return the stored value, None when missing or expired."""
        if (entry := self._entries.get(key)) is None:
            return None
        expires_at, payload = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return loads(payload)

    def put(self, key: str, value: Any, ttl: int) -> None:  # noqa: ANN401
        """Store a JSON-serializable value for ttl seconds."""
        self._entries[key] = (self._clock() + ttl, dumps(value))

    def forget(self, key: str) -> None:
        """Remove a stored value."""
        self._entries.pop(key, None)

    def __len__(self) -> int:
        """Return the number of stored entries, expired or not."""
        return len(self._entries)


class DatabaseCache:
    """Cache kept in a database table, shared between processes."""

    def __init__(
        self,
        engine: Engine,
        table_name: str = "erd_cache",
        clock: Callable[[], float] = time,
    ) -> None:
        """Initialize with an engine, creating the cache table when missing."""
        self.engine = engine
        self._clock = clock
        self.metadata = MetaData()
        self.table = Table(
            table_name,
            self.metadata,
            Column("key", String(255), primary_key=True),
            Column("value", Text, nullable=False),
            Column("expires_at", Float, nullable=False),
        )
        self.metadata.create_all(engine)

    def get(self, key: str) -> Any | None:  # noqa: ANN401
        """Return the stored value, None when missing or expired."""
        query = select(self.table.c.value, self.table.c.expires_at).where(
            self.table.c.key == key,
        )
        with self.engine.connect() as conn:
            row = conn.execute(query).first()

        if row is None or row.expires_at <= self._clock():
            return None
        return loads(row.value)

    def put(self, key: str, value: Any, ttl: int) -> None:  # noqa: ANN401
        """Store a JSON-serializable value for ttl seconds."""
        values = {"value": dumps(value), "expires_at": self._clock() + ttl}
        replace = update(self.table).where(self.table.c.key == key).values(values)

        with self.engine.begin() as conn:
            if conn.execute(replace).rowcount:
                return
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(self.table).values(key=key, **values))
        except IntegrityError:
            # Another writer inserted the key first, the last write wins
            logger.debug("Cache key %s inserted concurrently, updating", key)
            with self.engine.begin() as conn:
                conn.execute(replace)

    def forget(self, key: str) -> None:
        """Remove a stored value."""
        with self.engine.begin() as conn:
            conn.execute(delete(self.table).where(self.table.c.key == key))


def create_cache(config: ErdConfig) -> ResultCache:
    """Create the cache backend selected by the configuration."""
    if config.cache_store == "database":
        logger.debug("Using database cache at %s", config.cache_url)
        return DatabaseCache(create_engine(config.cache_url))
    return MemoryCache()
