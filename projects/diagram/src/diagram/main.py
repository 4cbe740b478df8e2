"""Main module for ER diagram generation."""

from __future__ import annotations

from collections import Counter
from copy import deepcopy
from datetime import UTC, datetime
from logging import getLogger
from re import sub
from typing import TYPE_CHECKING, Any, Self

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError

from diagram.cache import MemoryCache, cache_key, create_cache
from diagram.type_conversion import display_type
from introspect import (
    ClassDiscoverer,
    RelationshipIntrospector,
    RelationshipKind,
    SchemaIntrospector,
    load_class,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

    from diagram.cache import ResultCache
    from diagram.config import ErdConfig
    from diagram.schema_types import (
        ColumnSchema,
        DiagramSchema,
        MetadataSchema,
        Position,
        RelationshipSchema,
        TableSchema,
    )
    from introspect import RelationshipDescriptor, TableMetadata

logger = getLogger(__name__)

VERSION = "1.0.0"

EMPTY_MESSAGE = (
    "No mapped models found. Please ensure your models are in the configured paths."
)
ERROR_MESSAGE = "Unable to generate ERD. Please check your models and configuration."

# Grid layout hint for table nodes
ORIGIN = 100
SPACING = 300
TABLES_PER_ROW = 4

KIND_LABELS = {
    RelationshipKind.TO_ONE: "has one",
    RelationshipKind.TO_MANY: "has many",
    RelationshipKind.TO_ONE_OWNING: "belongs to",
    RelationshipKind.MANY_TO_MANY: "many to many",
    RelationshipKind.POLYMORPHIC_TO_ONE: "morph to",
    RelationshipKind.POLYMORPHIC_TO_MANY: "morph many",
}


def table_id(table_name: str) -> str:
    """Generate a consistent node id for a table name."""
    return "table_" + sub(r"[^0-9A-Za-z_]", "_", table_name)


def relationship_label(kind: str, method: str) -> str:
    """Generate a human-readable label for a relationship."""
    try:
        phrase = KIND_LABELS[RelationshipKind(kind)]
    except ValueError:
        phrase = kind
    return f"{method} ({phrase})"


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


def _metadata(
    models: list[str],
    tables: list[TableSchema],
    edges: list[RelationshipSchema],
) -> MetadataSchema:
    """Summarize a generation run."""
    kinds = Counter(edge["kind"] for edge in edges)
    return {
        "generated_at": _timestamp(),
        "total_tables": len(tables),
        "total_relationships": len(edges),
        "relationship_types": dict(sorted(kinds.items())),
        "models_analyzed": models,
        "version": VERSION,
    }


def empty_diagram() -> DiagramSchema:
    """Diagram returned when no mapped models are found."""
    metadata = _metadata([], [], [])
    metadata["message"] = EMPTY_MESSAGE
    return {"tables": [], "relationships": [], "metadata": metadata}


def error_diagram(error: BaseException | None = None) -> DiagramSchema:
    """Diagram returned when generation fails.

    The message is safe to show to anyone; the detail names the underlying
    exception and is meant for debugging only.
    """
    metadata = _metadata([], [], [])
    metadata["error"] = True
    metadata["message"] = ERROR_MESSAGE
    if error is not None:
        metadata["detail"] = f"{type(error).__name__}: {error}"
    return {"tables": [], "relationships": [], "metadata": metadata}


def _build_columns(metadata: TableMetadata) -> list[ColumnSchema]:
    """Build column nodes with display types and key flags."""
    primary_keys = set(metadata["primary_keys"])
    return [
        {
            "name": column["name"],
            "type": display_type(column["type"]),
            "raw_type": column["type"],
            "nullable": column["nullable"],
            "default": column["default"],
            "primary": column["name"] in primary_keys,
            "foreign": False,
        }
        for column in metadata["columns"]
    ]


def _build_tables(models_metadata: Mapping[str, TableMetadata]) -> list[TableSchema]:
    """Build one node per table, in discovery order."""
    tables: list[TableSchema] = []
    seen: set[str] = set()

    for model, metadata in models_metadata.items():
        node_id = table_id(metadata["table"])
        if node_id in seen:
            logger.info("Model %s shares table %s", model, metadata["table"])
            continue
        seen.add(node_id)

        index = len(tables)
        tables.append(
            {
                "id": node_id,
                "name": metadata["table"],
                "model": model,
                "columns": _build_columns(metadata),
                "primary_key": metadata["primary_key"],
                "timestamps": metadata["timestamps"],
                "position": {
                    "x": ORIGIN + (index % TABLES_PER_ROW) * SPACING,
                    "y": ORIGIN + (index // TABLES_PER_ROW) * SPACING,
                },
                "fillable": metadata["fillable"],
                "guarded": metadata["guarded"],
                "casts": metadata["casts"],
            },
        )

    return tables


def _foreign_columns(edge: RelationshipSchema) -> Iterator[tuple[str, str]]:
    """Yield (table id, column) pairs holding the keys of an edge."""
    linkage = edge["linkage"]
    match edge["kind"]:
        case RelationshipKind.MANY_TO_MANY:
            pivot = table_id(linkage["pivot_table"] or "")
            for field in ("foreign_pivot_key", "related_pivot_key"):
                if column := linkage.get(field):
                    yield pivot, column
            return
        case RelationshipKind.TO_ONE_OWNING | RelationshipKind.POLYMORPHIC_TO_ONE:
            holder = edge["source"]
        case _:
            holder = edge["target"]

    for field in ("foreign_key", "morph_type"):
        if column := linkage.get(field):
            yield holder, column


def _mark_foreign_columns(
    tables: list[TableSchema],
    edges: list[RelationshipSchema],
) -> None:
    foreign = {pair for edge in edges for pair in _foreign_columns(edge)}
    for table in tables:
        for column in table["columns"]:
            column["foreign"] = (table["id"], column["name"]) in foreign


def apply_positions(
    diagram: DiagramSchema,
    overrides: Mapping[str, Position],
) -> DiagramSchema:
    """Return a copy with node positions overridden by table name or node id."""
    result = deepcopy(diagram)
    for table in result["tables"]:
        position = overrides.get(table["id"]) or overrides.get(table["name"])
        if position is not None:
            table["position"] = {"x": int(position["x"]), "y": int(position["y"])}
    return result


class GraphAssembler:
    """Combines discovery, schema and relationship metadata into a diagram."""

    def __init__(
        self,
        config: ErdConfig,
        discoverer: ClassDiscoverer | None = None,
        schema: SchemaIntrospector | None = None,
        relationships: RelationshipIntrospector | None = None,
        cache: ResultCache | None = None,
    ) -> None:
        """Initialize with explicit configuration and collaborators."""
        self.config = config
        self.discoverer = discoverer or ClassDiscoverer()
        self.schema = schema or SchemaIntrospector()
        self.relationships = relationships or RelationshipIntrospector(
            config.analysis_timeout,
        )
        self.cache = MemoryCache() if cache is None else cache

    @classmethod
    def from_config(cls, config: ErdConfig) -> Self:
        """Create an assembler with the database and cache the config names."""
        engine = create_engine(config.database_url) if config.database_url else None
        return cls(config, schema=SchemaIntrospector(engine), cache=create_cache(config))

    def _key(self, phase: str, identifier: str | None = None) -> str:
        return cache_key(self.config.cache_key, phase, identifier)

    def _cached[T](self, key: str, compute: Callable[[], T]) -> T:
        """Read-through cache for a single phase."""
        if not self.config.cache_enabled:
            return compute()
        if (value := self.cache.get(key)) is not None:
            return value
        value = compute()
        if value is not None:
            self.cache.put(key, value, self.config.cache_ttl)
        return value

    def _discover(self) -> list[str]:
        return self.discoverer.discover(
            self.config.search_roots,
            self.config.model_namespace,
            self.config.excluded_models,
        )

    def discover_models(self) -> list[str]:
        """Qualified names of all discoverable models."""
        return self._cached(self._key("models_discovery"), self._discover)

    def analyze_model(self, model: str) -> TableMetadata | None:
        """Table metadata of a single model, None when it cannot be analyzed."""

        def analyze() -> TableMetadata | None:
            try:
                return self.schema.introspect(load_class(model))
            except (ImportError, ValueError, SQLAlchemyError) as e:
                logger.warning("Failed to analyze model %s: %s", model, e)
                return None

        return self._cached(self._key("model_analysis", model), analyze)

    def model_metadata(self) -> dict[str, TableMetadata]:
        """Table metadata of every model that could be analyzed."""
        return {
            model: metadata
            for model in self.discover_models()
            if (metadata := self.analyze_model(model)) is not None
        }

    def relationships_for(self, model: str) -> dict[str, RelationshipDescriptor]:
        """Relationship descriptors of a single model."""

        def detect() -> dict[str, RelationshipDescriptor]:
            try:
                cls = load_class(model)
            except (ImportError, ValueError) as e:
                logger.warning("Failed to load model %s: %s", model, e)
                return {}
            return self.relationships.detect(cls)

        return self._cached(self._key("relationships", model), detect)

    def _build_relationship(
        self,
        edge_id: int,
        source: str,
        descriptor: RelationshipDescriptor,
        table_names: Mapping[str, str],
    ) -> RelationshipSchema | None:
        target = table_names.get(descriptor["related"])
        if target is None:
            # Related model is excluded or was not discovered
            return None
        if not self.relationships.validate(descriptor):
            return None

        return {
            "id": f"relationship_{edge_id}",
            "source": table_id(source),
            "target": table_id(target),
            "kind": descriptor["kind"],
            "method": descriptor["method"],
            "label": relationship_label(descriptor["kind"], descriptor["method"]),
            "linkage": descriptor["linkage"],
        }

    def _build_relationships(
        self,
        relationships: Mapping[str, Mapping[str, RelationshipDescriptor]],
        models_metadata: Mapping[str, TableMetadata],
    ) -> list[RelationshipSchema]:
        """Build edges for every valid descriptor whose tables are known."""
        table_names = {model: meta["table"] for model, meta in models_metadata.items()}
        edges: list[RelationshipSchema] = []

        for model, descriptors in relationships.items():
            if (source := table_names.get(model)) is None:
                continue
            for method, descriptor in descriptors.items():
                try:
                    edge = self._build_relationship(
                        len(edges) + 1,
                        source,
                        descriptor,
                        table_names,
                    )
                except Exception as e:  # noqa: BLE001
                    logger.warning(
                        "Failed to create connection for relationship %s in %s: %s",
                        method,
                        model,
                        e,
                    )
                    continue
                if edge is not None:
                    edges.append(edge)

        return edges

    def _generate(self) -> DiagramSchema:
        key = self._key("complete_graph")
        if self.config.cache_enabled and (cached := self.cache.get(key)) is not None:
            return cached

        models_metadata = self.model_metadata()
        if not models_metadata:
            return empty_diagram()

        relationships = {model: self.relationships_for(model) for model in models_metadata}

        tables = _build_tables(models_metadata)
        edges = self._build_relationships(relationships, models_metadata)
        _mark_foreign_columns(tables, edges)

        diagram: DiagramSchema = {
            "tables": tables,
            "relationships": edges,
            "metadata": _metadata(list(models_metadata), tables, edges),
        }

        if self.config.cache_enabled:
            self.cache.put(key, diagram, self.config.cache_ttl)

        return diagram

    def generate(self) -> DiagramSchema:
        """Generate the complete diagram, error-shaped when generation fails."""
        try:
            return self._generate()
        except Exception as e:
            logger.exception("Failed to generate ERD data")
            return error_diagram(e)

    def clear_cache(self) -> None:
        """Forget every cached phase of every known model."""
        cached_models: list[Any] = (
            self.cache.get(self._key("models_discovery")) or []
        )
        self.cache.forget(self._key("complete_graph"))
        self.cache.forget(self._key("models_discovery"))

        for model in {*cached_models, *self._discover()}:
            self.cache.forget(self._key("model_analysis", model))
            self.cache.forget(self._key("relationships", model))

    def refresh(self) -> DiagramSchema:
        """Invalidate all cached results, then regenerate."""
        try:
            self.clear_cache()
        except Exception as e:
            logger.exception("Failed to clear ERD cache")
            return error_diagram(e)
        return self.generate()

    def generate_safely(self) -> DiagramSchema:
        """Generate the diagram without ever raising."""
        try:
            return self.generate()
        except Exception:
            logger.exception("Critical error generating ERD data")
            return error_diagram()
