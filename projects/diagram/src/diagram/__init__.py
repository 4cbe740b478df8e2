"""ER diagram generation and visualization package."""

from diagram.cache import DatabaseCache, MemoryCache, ResultCache, create_cache
from diagram.config import ErdConfig, load_config
from diagram.html_export import graph_to_html
from diagram.main import GraphAssembler, apply_positions, table_id

__all__ = [
    "DatabaseCache",
    "ErdConfig",
    "GraphAssembler",
    "MemoryCache",
    "ResultCache",
    "apply_positions",
    "create_cache",
    "graph_to_html",
    "load_config",
    "table_id",
]
