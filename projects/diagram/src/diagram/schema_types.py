"""TypedDict schemas for ER diagram JSON structure."""

from typing import Any, NotRequired, TypedDict


class Position(TypedDict):
    """Layout hint for a table node."""

    x: int
    y: int


class ColumnSchema(TypedDict):
    """Schema for a table column."""

    name: str
    type: str  # Display type, e.g. "integer", "string"
    raw_type: str  # Type as declared by the database
    nullable: bool
    default: Any
    primary: bool
    foreign: bool


class TableSchema(TypedDict):
    """Schema for a table node."""

    id: str
    name: str
    model: str
    columns: list[ColumnSchema]
    primary_key: str
    timestamps: bool
    position: Position
    fillable: list[str]
    guarded: list[str]
    casts: dict[str, str]


class RelationshipSchema(TypedDict):
    """Schema for a relationship edge between two table nodes."""

    id: str
    source: str  # Table id of the owning model
    target: str  # Table id of the related model
    kind: str
    method: str
    label: str
    linkage: dict[str, str | None]


class MetadataSchema(TypedDict):
    """Summary of a diagram generation run."""

    generated_at: str
    total_tables: int
    total_relationships: int
    relationship_types: dict[str, int]
    models_analyzed: list[str]
    version: str
    message: NotRequired[str]
    error: NotRequired[bool]
    detail: NotRequired[str]


class DiagramSchema(TypedDict):
    """Root schema for the complete ER diagram."""

    tables: list[TableSchema]
    relationships: list[RelationshipSchema]
    metadata: MetadataSchema
