"""Relationship detection for mapped classes."""

from __future__ import annotations

import inspect
from threading import Thread
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError

from introspect.associations import (
    Association,
    BelongsTo,
    BelongsToMany,
    HasMany,
    HasOne,
    MorphMany,
    MorphTo,
    from_relationship,
    qualified_name,
)
from introspect.discovery import load_class
from introspect.types import LINKAGE_FIELDS, RelationshipDescriptor, RelationshipKind

if TYPE_CHECKING:
    from collections.abc import Callable

logger = getLogger(__name__)

# Specializations must precede the types they extend: MorphTo is a BelongsTo
# and MorphMany is a HasMany
KIND_PRIORITY: tuple[tuple[RelationshipKind, type[Association]], ...] = (
    (RelationshipKind.POLYMORPHIC_TO_ONE, MorphTo),
    (RelationshipKind.POLYMORPHIC_TO_MANY, MorphMany),
    (RelationshipKind.MANY_TO_MANY, BelongsToMany),
    (RelationshipKind.TO_ONE, HasOne),
    (RelationshipKind.TO_MANY, HasMany),
    (RelationshipKind.TO_ONE_OWNING, BelongsTo),
)

EXCLUDED_PREFIXES = ("get", "set", "is", "has")

EXCLUDED_METHODS = frozenset(
    {
        "copy",
        "delete",
        "dict",
        "json",
        "metadata",
        "query",
        "refresh",
        "registry",
        "save",
        "to_dict",
        "to_json",
        "update",
        "validate",
    },
)

# Methods declared in these packages belong to the ORM, not to the models
BASE_MODULES = ("sqlalchemy", "builtins")


def relation_kind(association: Association) -> RelationshipKind | None:
    """Classify an association object, most specific type first."""
    return next(
        (kind for kind, cls in KIND_PRIORITY if isinstance(association, cls)),
        None,
    )


def is_excluded_method(name: str) -> bool:
    """Check if a method name can never be a relationship accessor."""
    return name in EXCLUDED_METHODS or any(
        name == prefix or name.startswith(f"{prefix}_") for prefix in EXCLUDED_PREFIXES
    )


def _declaring_class(cls: type, name: str) -> type | None:
    return next((klass for klass in cls.__mro__ if name in vars(klass)), None)


def _is_base_type(cls: type) -> bool:
    module = cls.__module__
    return any(module == base or module.startswith(f"{base}.") for base in BASE_MODULES)


def _required_parameters(function: Callable[..., Any]) -> int:
    """Count required parameters besides self."""
    try:
        parameters = list(inspect.signature(function).parameters.values())[1:]
    except (TypeError, ValueError):
        return -1
    return sum(
        1
        for parameter in parameters
        if parameter.default is parameter.empty
        and parameter.kind not in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD)
    )


def accessor_candidates(cls: type) -> list[str]:
    """Public zero-argument methods declared by the model or its user ancestors."""
    candidates: list[str] = []
    for name in dir(cls):
        if name.startswith("_") or is_excluded_method(name):
            continue
        try:
            attribute = inspect.getattr_static(cls, name)
        except AttributeError:
            continue
        # Static methods, class methods, properties and mapped attributes are skipped
        if not inspect.isfunction(attribute):
            continue
        declaring = _declaring_class(cls, name)
        if declaring is None or _is_base_type(declaring):
            continue
        if _required_parameters(attribute) != 0:
            continue
        candidates.append(name)
    return sorted(candidates)


def _linkage_value(association: Association, field: str) -> str | None:
    value = getattr(association, field, None)
    return None if value is None else str(value)


def describe(method: str, association: Association) -> RelationshipDescriptor | None:
    """Build the descriptor of an association, None for unknown types."""
    kind = relation_kind(association)
    if kind is None:
        return None

    return {
        "kind": kind.value,
        "method": method,
        "owner": qualified_name(association.owner),
        "related": qualified_name(association.related),
        "linkage": {
            field: _linkage_value(association, field) for field in LINKAGE_FIELDS[kind]
        },
    }


class RelationshipIntrospector:
    """Detects and classifies the associations a mapped class exposes."""

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize with the time budget for probing accessors of one class."""
        self.timeout = timeout

    def declared(self, cls: type) -> dict[str, RelationshipDescriptor]:
        """Descriptors for relationships declared with ``relationship()``."""
        try:
            relationships = list(sa_inspect(cls).relationships.items())
        except SQLAlchemyError as e:
            logger.warning(
                "Failed to configure relationships of %s: %s",
                qualified_name(cls),
                e,
            )
            return {}

        descriptors: dict[str, RelationshipDescriptor] = {}
        for key, prop in relationships:
            try:
                association = from_relationship(cls, prop)
            except (SQLAlchemyError, LookupError, AttributeError) as e:
                logger.warning(
                    "Failed to analyze relationship %s in %s: %s",
                    key,
                    qualified_name(cls),
                    e,
                )
                continue
            if descriptor := describe(key, association):
                descriptors[key] = descriptor
        return descriptors

    def probe(self, cls: type) -> dict[str, RelationshipDescriptor]:
        """Invoke accessor candidates and keep those returning associations."""
        candidates = accessor_candidates(cls)
        if not candidates:
            return {}

        try:
            instance = cls()
        except Exception as e:  # noqa: BLE001
            logger.warning(
                "Cannot instantiate %s to probe accessors: %s",
                qualified_name(cls),
                e,
            )
            return {}

        descriptors: dict[str, RelationshipDescriptor] = {}
        for name in candidates:
            try:
                result = getattr(instance, name)()
            except Exception as e:  # noqa: BLE001
                # Accessors are arbitrary model code
                logger.warning(
                    "Failed to analyze relationship method %s in %s: %s",
                    name,
                    qualified_name(cls),
                    e,
                )
                continue
            if not isinstance(result, Association):
                continue
            if descriptor := describe(name, result):
                descriptors[name] = descriptor
        return descriptors

    def _probe_within_timeout(self, cls: type) -> dict[str, RelationshipDescriptor]:
        if self.timeout is None:
            return self.probe(cls)

        result: dict[str, RelationshipDescriptor] = {}
        # Daemon so an accessor that never returns cannot keep the process alive
        worker = Thread(
            target=lambda: result.update(self.probe(cls)),
            name=f"erd-probe-{cls.__name__}",
            daemon=True,
        )
        worker.start()
        worker.join(self.timeout)

        if worker.is_alive():
            logger.warning(
                "Probing accessors of %s timed out after %s seconds",
                qualified_name(cls),
                self.timeout,
            )
            return {}
        return result

    def detect(self, cls: type) -> dict[str, RelationshipDescriptor]:
        """Map accessor names to relationship descriptors."""
        descriptors = self.declared(cls)
        descriptors.update(self._probe_within_timeout(cls))
        return dict(sorted(descriptors.items()))

    def validate(self, descriptor: RelationshipDescriptor) -> bool:
        """Check that a descriptor is complete enough to draw."""
        kind = descriptor.get("kind")
        related = descriptor.get("related")
        if not kind or not related:
            return False

        try:
            relation = RelationshipKind(kind)
            load_class(related)
        except (ValueError, ImportError):
            return False

        linkage = descriptor.get("linkage") or {}
        return all(linkage.get(field) for field in LINKAGE_FIELDS[relation])
