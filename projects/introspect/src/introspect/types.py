"""TypedDict schemas for introspected model metadata."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, TypedDict


class RelationshipKind(StrEnum):
    """The recognized relationship kinds."""

    TO_ONE = "toOne"
    TO_MANY = "toMany"
    TO_ONE_OWNING = "toOneOwning"
    MANY_TO_MANY = "manyToMany"
    POLYMORPHIC_TO_ONE = "polymorphicToOne"
    POLYMORPHIC_TO_MANY = "polymorphicToMany"


# Linkage fields each kind must carry to be drawn as an edge
LINKAGE_FIELDS: dict[RelationshipKind, tuple[str, ...]] = {
    RelationshipKind.TO_ONE_OWNING: ("foreign_key", "owner_key", "parent_table"),
    RelationshipKind.TO_ONE: ("foreign_key", "local_key", "related_table"),
    RelationshipKind.TO_MANY: ("foreign_key", "local_key", "related_table"),
    RelationshipKind.MANY_TO_MANY: (
        "pivot_table",
        "foreign_pivot_key",
        "related_pivot_key",
        "parent_key",
        "related_key",
        "related_table",
    ),
    RelationshipKind.POLYMORPHIC_TO_ONE: ("morph_type", "foreign_key"),
    RelationshipKind.POLYMORPHIC_TO_MANY: (
        "morph_type",
        "foreign_key",
        "local_key",
        "related_table",
    ),
}


class ColumnMetadata(TypedDict):
    """Snapshot of a reflected database column."""

    name: str
    type: str  # Raw declared type, e.g. "varchar(255)"
    nullable: bool
    default: Any


class TableMetadata(TypedDict):
    """Schema and declared configuration of a mapped class."""

    model: str
    table: str
    columns: list[ColumnMetadata]
    primary_key: str
    primary_keys: list[str]  # All PK columns (supports composite keys)
    timestamps: bool
    fillable: list[str]
    guarded: list[str]
    casts: dict[str, str]


class RelationshipDescriptor(TypedDict):
    """A classified association exposed by a mapped class."""

    kind: str
    method: str
    owner: str
    related: str
    linkage: dict[str, str | None]
