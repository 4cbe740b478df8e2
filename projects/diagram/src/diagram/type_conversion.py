"""Normalization of declared column types into display types."""

from re import match
from typing import Literal

type DisplayType = Literal[
    "integer",
    "string",
    "text",
    "datetime",
    "date",
    "time",
    "decimal",
    "float",
    "boolean",
    "json",
    "other",
]

DISPLAY_TYPES: dict[str, DisplayType] = {
    "bigint": "integer",
    "int": "integer",
    "integer": "integer",
    "mediumint": "integer",
    "smallint": "integer",
    "tinyint": "integer",
    "serial": "integer",
    "bigserial": "integer",
    "char": "string",
    "character": "string",
    "character varying": "string",
    "nchar": "string",
    "nvarchar": "string",
    "string": "string",
    "uuid": "string",
    "varchar": "string",
    "clob": "text",
    "longtext": "text",
    "mediumtext": "text",
    "text": "text",
    "tinytext": "text",
    "datetime": "datetime",
    "timestamp": "datetime",
    "timestamp without time zone": "datetime",
    "timestamp with time zone": "datetime",
    "date": "date",
    "time": "time",
    "decimal": "decimal",
    "numeric": "decimal",
    "double": "float",
    "double precision": "float",
    "float": "float",
    "real": "float",
    "bool": "boolean",
    "boolean": "boolean",
    "json": "json",
    "jsonb": "json",
}


def base_type(declared: str) -> str:
    """Strip length, precision and modifiers from a declared type.

    Examples:
        VARCHAR(255) -> varchar
        NUMERIC(10, 2) -> numeric
        BIGINT UNSIGNED -> bigint

    """
    name = declared.strip().lower()
    if (found := match(r"([a-z ]+?)\s*(\(|$)", name)) is None:
        return name
    head = found[1].strip()
    return head if head in DISPLAY_TYPES else head.split(" ")[0]


def display_type(declared: str) -> DisplayType:
    """Normalize a declared column type, "other" when unrecognized."""
    return DISPLAY_TYPES.get(base_type(declared), "other")
