"""Association objects returned by relationship accessors.

Mapped classes expose associations in two ways. Relationships declared with
SQLAlchemy's ``relationship()`` are converted with :func:`from_relationship`.
Associations SQLAlchemy has no construct for, such as polymorphic links held
in a type/id column pair, are exposed by plain accessor methods that return
one of the classes below::

    class Comment(Base):
        def commentable(self) -> MorphTo:
            return MorphTo(self, "commentable")

Omitted key names follow the usual conventions (``<owner>_id`` foreign keys,
the mapped primary key as local/owner key).
"""

from __future__ import annotations

from re import sub
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import RelationshipDirection, RelationshipProperty


def snake_case(name: str) -> str:
    """Convert name to snake_case."""
    return sub("([a-z0-9])([A-Z])|([A-Z])([A-Z][a-z])", r"\1\3_\2\4", name).lower()


def qualified_name(cls: type) -> str:
    """Return the fully-qualified name of a class."""
    return f"{cls.__module__}.{cls.__qualname__}"


def table_name(cls: type) -> str | None:
    """Return the table a class is mapped onto, if any."""
    mapper = sa_inspect(cls, raiseerr=False)
    if mapper is not None and mapper.local_table is not None:
        return mapper.local_table.name
    return getattr(cls, "__tablename__", None)


def primary_key_name(cls: type) -> str:
    """Return the first primary key column name of a mapped class."""
    mapper = sa_inspect(cls, raiseerr=False)
    if mapper is not None and mapper.primary_key:
        return mapper.primary_key[0].name
    return "id"


def _owner_class(parent: Any) -> type:  # noqa: ANN401
    return parent if isinstance(parent, type) else type(parent)


def _foreign_key_for(cls: type) -> str:
    return f"{snake_case(cls.__name__)}_id"


class Association:
    """Base class for every association type."""

    def __init__(self, parent: Any, related: type) -> None:  # noqa: ANN401
        """Bind the association to its owning model (instance or class)."""
        self.owner = _owner_class(parent)
        self.related = related

    @property
    def related_table(self) -> str | None:
        """Table of the related class."""
        return table_name(self.related)

    def __repr__(self) -> str:
        """Show owner and related class."""
        return (
            f"{type(self).__name__}({self.owner.__name__} -> {self.related.__name__})"
        )


class BelongsTo(Association):
    """The owner holds a foreign key to the related class."""

    def __init__(
        self,
        parent: Any,  # noqa: ANN401
        related: type,
        foreign_key: str | None = None,
        owner_key: str | None = None,
    ) -> None:
        """Create a to-one-owning association."""
        super().__init__(parent, related)
        self.foreign_key = foreign_key or _foreign_key_for(related)
        self.owner_key = owner_key or primary_key_name(related)

    @property
    def parent_table(self) -> str | None:
        """Table the foreign key points at."""
        return self.related_table


class HasOneOrMany(Association):
    """The related class holds a foreign key to the owner."""

    def __init__(
        self,
        parent: Any,  # noqa: ANN401
        related: type,
        foreign_key: str | None = None,
        local_key: str | None = None,
    ) -> None:
        """Create a to-one or to-many association."""
        super().__init__(parent, related)
        self.foreign_key = foreign_key or _foreign_key_for(self.owner)
        self.local_key = local_key or primary_key_name(self.owner)


class HasOne(HasOneOrMany):
    """At most one related row points at the owner."""


class HasMany(HasOneOrMany):
    """Any number of related rows point at the owner."""


class BelongsToMany(Association):
    """Owner and related class are linked through a pivot table."""

    def __init__(  # noqa: PLR0913
        self,
        parent: Any,  # noqa: ANN401
        related: type,
        pivot_table: str | None = None,
        foreign_pivot_key: str | None = None,
        related_pivot_key: str | None = None,
        parent_key: str | None = None,
        related_key: str | None = None,
    ) -> None:
        """Create a many-to-many association."""
        super().__init__(parent, related)
        self.pivot_table = pivot_table or "_".join(
            sorted((snake_case(self.owner.__name__), snake_case(related.__name__))),
        )
        self.foreign_pivot_key = foreign_pivot_key or _foreign_key_for(self.owner)
        self.related_pivot_key = related_pivot_key or _foreign_key_for(related)
        self.parent_key = parent_key or primary_key_name(self.owner)
        self.related_key = related_key or primary_key_name(related)


class MorphTo(BelongsTo):
    """The owner points at any table through a type/id column pair.

    The concrete target is only known per row, so the related class is the
    owner itself until a row is loaded.
    """

    def __init__(
        self,
        parent: Any,  # noqa: ANN401
        name: str,
        type_column: str | None = None,
        id_column: str | None = None,
    ) -> None:
        """Create a polymorphic to-one association named ``name``."""
        owner = _owner_class(parent)
        super().__init__(parent, owner, foreign_key=id_column or f"{name}_id")
        self.name = name
        self.morph_type = type_column or f"{name}_type"


class MorphMany(HasMany):
    """Rows of the related class point at the owner through a type/id pair."""

    def __init__(  # noqa: PLR0913
        self,
        parent: Any,  # noqa: ANN401
        related: type,
        name: str,
        type_column: str | None = None,
        id_column: str | None = None,
        local_key: str | None = None,
    ) -> None:
        """Create a polymorphic to-many association named ``name``."""
        super().__init__(
            parent,
            related,
            foreign_key=id_column or f"{name}_id",
            local_key=local_key,
        )
        self.name = name
        self.morph_type = type_column or f"{name}_type"


def from_relationship(owner: type, prop: RelationshipProperty[Any]) -> Association:
    """Convert a declared SQLAlchemy relationship into an association object."""
    related = prop.mapper.class_

    if prop.secondary is not None:
        parent_column, foreign_pivot = prop.synchronize_pairs[0]
        related_column, related_pivot = prop.secondary_synchronize_pairs[0]
        return BelongsToMany(
            owner,
            related,
            pivot_table=prop.secondary.name,
            foreign_pivot_key=foreign_pivot.name,
            related_pivot_key=related_pivot.name,
            parent_key=parent_column.name,
            related_key=related_column.name,
        )

    local, remote = next(iter(prop.local_remote_pairs))
    if prop.direction is RelationshipDirection.MANYTOONE:
        return BelongsTo(owner, related, foreign_key=local.name, owner_key=remote.name)

    association = HasMany if prop.uselist else HasOne
    return association(owner, related, foreign_key=remote.name, local_key=local.name)
