"""Introspection of SQLAlchemy model layers."""

from introspect.associations import (
    Association,
    BelongsTo,
    BelongsToMany,
    HasMany,
    HasOne,
    MorphMany,
    MorphTo,
)
from introspect.discovery import ClassDiscoverer, load_class
from introspect.relationships import RelationshipIntrospector
from introspect.schema import SchemaIntrospector
from introspect.types import (
    ColumnMetadata,
    RelationshipDescriptor,
    RelationshipKind,
    TableMetadata,
)

__all__ = [
    "Association",
    "BelongsTo",
    "BelongsToMany",
    "ClassDiscoverer",
    "ColumnMetadata",
    "HasMany",
    "HasOne",
    "MorphMany",
    "MorphTo",
    "RelationshipDescriptor",
    "RelationshipIntrospector",
    "RelationshipKind",
    "SchemaIntrospector",
    "TableMetadata",
    "load_class",
]
