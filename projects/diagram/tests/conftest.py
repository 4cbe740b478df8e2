"""Shared fixtures for diagram generation tests."""

from collections.abc import Generator
from pathlib import Path

import pytest
from sqlalchemy import Engine, create_engine

from diagram import ErdConfig, GraphAssembler, MemoryCache
from introspect import SchemaIntrospector

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(name="authors_engine")
def authors_database(tmp_path: Path) -> Generator[Engine]:
    """SQLite database with the users and posts tables."""
    from authors.models.base import Base  # noqa: PLC0415

    engine = create_engine(f"sqlite:///{tmp_path / 'authors.sqlite'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="shop_engine")
def shop_database(tmp_path: Path) -> Generator[Engine]:
    """SQLite database where the reviews table was never migrated."""
    from shop.models.base import Base  # noqa: PLC0415

    engine = create_engine(f"sqlite:///{tmp_path / 'shop.sqlite'}")
    tables = [table for table in Base.metadata.sorted_tables if table.name != "reviews"]
    Base.metadata.create_all(engine, tables=tables)
    yield engine
    engine.dispose()


@pytest.fixture(name="authors_config")
def authors_configuration() -> ErdConfig:
    """Configuration pointing at the authors models."""
    return ErdConfig(
        model_paths=("authors/models",),
        model_namespace="authors.models",
        base_path=FIXTURES,
    )


@pytest.fixture(name="shop_config")
def shop_configuration() -> ErdConfig:
    """Configuration pointing at the shop models, suppliers excluded."""
    return ErdConfig(
        model_paths=("shop/models",),
        model_namespace="shop.models",
        excluded_models=("Supplier",),
        base_path=FIXTURES,
    )


@pytest.fixture(name="authors_assembler")
def authors_graph_assembler(
    authors_config: ErdConfig,
    authors_engine: Engine,
) -> GraphAssembler:
    """Assembler over the authors models with an in-memory cache."""
    return GraphAssembler(
        authors_config,
        schema=SchemaIntrospector(authors_engine),
        cache=MemoryCache(),
    )


@pytest.fixture(name="shop_assembler")
def shop_graph_assembler(shop_config: ErdConfig, shop_engine: Engine) -> GraphAssembler:
    """Assembler over the shop models with an in-memory cache."""
    return GraphAssembler(
        shop_config,
        schema=SchemaIntrospector(shop_engine),
        cache=MemoryCache(),
    )
