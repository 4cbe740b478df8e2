"""Schema introspection of mapped classes against the live database."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError

from introspect.associations import qualified_name, snake_case, table_name
from introspect.types import ColumnMetadata, TableMetadata

if TYPE_CHECKING:
    from sqlalchemy import Engine
    from sqlalchemy.engine.interfaces import ReflectedColumn
    from sqlalchemy.orm import Mapper
    from sqlalchemy.types import TypeEngine

logger = getLogger(__name__)

TIMESTAMP_COLUMNS = frozenset({"created_at", "updated_at"})


def _declared_type(sql_type: TypeEngine[Any]) -> str:
    """Render a reflected type the way the database declares it."""
    try:
        return str(sql_type).lower()
    except Exception:  # noqa: BLE001
        # Some dialect types cannot compile without a dialect
        return type(sql_type).__name__.lower()


def _build_column(col_info: ReflectedColumn) -> ColumnMetadata:
    """Build column metadata from SQLAlchemy column info."""
    return {
        "name": col_info["name"],
        "type": _declared_type(col_info["type"]),
        "nullable": bool(col_info.get("nullable", False)),
        "default": col_info.get("default"),
    }


def _column_casts(mapper: Mapper[Any]) -> dict[str, str]:
    """Python types the mapped columns are loaded as."""
    casts: dict[str, str] = {}
    for key, column in mapper.columns.items():
        try:
            casts[key] = column.type.python_type.__name__
        except NotImplementedError:
            continue
    return casts


class SchemaIntrospector:
    """Reads table, column and declared attribute metadata for mapped classes."""

    def __init__(self, engine: Engine | None = None) -> None:
        """Initialize with the engine of the database to reflect."""
        self.engine = engine

    def columns(self, name: str, schema: str | None = None) -> list[ColumnMetadata]:
        """Reflect the columns of a table, empty when it does not exist."""
        if self.engine is None:
            return []

        try:
            # A fresh inspector so reflection is never served from a stale cache
            inspector = sa_inspect(self.engine)
            if not inspector.has_table(name, schema=schema):
                logger.info("Table %s does not exist in the database", name)
                return []
            columns_info = inspector.get_columns(name, schema=schema)
        except SQLAlchemyError as e:
            logger.warning("Failed to get columns for table %s: %s", name, e)
            return []

        return [_build_column(col_info) for col_info in columns_info]

    def introspect(self, cls: type) -> TableMetadata:
        """Derive the table metadata of a mapped class."""
        mapper: Mapper[Any] = sa_inspect(cls)
        table = mapper.local_table
        name = table_name(cls) or snake_case(cls.__name__)
        primary_keys = [column.name for column in mapper.primary_key]

        timestamps = getattr(cls, "__timestamps__", None)
        if timestamps is None:
            timestamps = TIMESTAMP_COLUMNS <= set(table.c.keys())

        return {
            "model": qualified_name(cls),
            "table": name,
            "columns": self.columns(name, getattr(table, "schema", None)),
            "primary_key": primary_keys[0] if primary_keys else "id",
            "primary_keys": primary_keys,
            "timestamps": bool(timestamps),
            "fillable": list(getattr(cls, "__fillable__", [])),
            "guarded": list(getattr(cls, "__guarded__", ["*"])),
            "casts": {**_column_casts(mapper), **getattr(cls, "__casts__", {})},
        }
