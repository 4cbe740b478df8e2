"""Configuration for ER diagram generation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from tomllib import load
from typing import Any, Literal

type CacheStore = Literal["memory", "database"]

CACHE_STORES = ("memory", "database")

DEFAULT_CONFIG_FILES = ("erd.toml", "pyproject.toml")


@dataclass(frozen=True)
class ErdConfig:
    """Options consumed by discovery, introspection and the assembler."""

    model_paths: tuple[str, ...] = ("app/models",)
    model_namespace: str = "app.models"
    excluded_models: tuple[str, ...] = ()
    database_url: str | None = None
    base_path: Path = field(default_factory=Path.cwd)
    prepend_sys_path: tuple[str, ...] = (".",)
    cache_enabled: bool = True
    cache_ttl: int = 3600
    cache_key: str = "erd_data"
    cache_store: CacheStore = "memory"
    cache_url: str = "sqlite:///.erd_cache.sqlite"
    analysis_timeout: float | None = 10.0

    @property
    def search_roots(self) -> list[Path]:
        """Model paths resolved against the base path."""
        return [self.base_path / path for path in self.model_paths]


def _strings(value: Any, option: str) -> tuple[str, ...]:  # noqa: ANN401
    """Validate a list of strings, dropping blank entries."""
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"Option '{option}' must be a list of strings"
        raise ValueError(msg)
    return tuple(v for v in value if v.strip())


def _typed(value: Any, option: str, expected: type | tuple[type, ...]) -> Any:  # noqa: ANN401
    # bool is an int subclass, reject it where a number is expected
    if isinstance(value, bool) and bool not in (
        expected if isinstance(expected, tuple) else (expected,)
    ):
        msg = f"Option '{option}' has invalid type bool"
        raise ValueError(msg)
    if not isinstance(value, expected):
        msg = f"Option '{option}' has invalid type {type(value).__name__}"
        raise ValueError(msg)
    return value


def _models_options(table: dict[str, Any]) -> dict[str, Any]:
    options: dict[str, Any] = {}
    if "paths" in table:
        options["model_paths"] = _strings(table["paths"], "models.paths")
    if "namespace" in table:
        options["model_namespace"] = _typed(
            table["namespace"],
            "models.namespace",
            str,
        )
    if "exclude" in table:
        options["excluded_models"] = _strings(table["exclude"], "models.exclude")
    return options


def _cache_options(table: dict[str, Any]) -> dict[str, Any]:
    options: dict[str, Any] = {}
    if "enabled" in table:
        options["cache_enabled"] = _typed(table["enabled"], "cache.enabled", bool)
    if "ttl" in table:
        ttl = _typed(table["ttl"], "cache.ttl", int)
        if ttl <= 0:
            msg = f"Option 'cache.ttl' must be positive, got {ttl}"
            raise ValueError(msg)
        options["cache_ttl"] = ttl
    if "key" in table:
        options["cache_key"] = _typed(table["key"], "cache.key", str)
    if "store" in table:
        store = table["store"]
        if store not in CACHE_STORES:
            msg = f"Unknown cache store: {store}"
            raise ValueError(msg)
        options["cache_store"] = store
    if "url" in table:
        options["cache_url"] = _typed(table["url"], "cache.url", str)
    return options


def config_from_dict(data: dict[str, Any], base_path: Path | None = None) -> ErdConfig:
    """Build configuration from the parsed TOML tables."""
    options: dict[str, Any] = {}
    options.update(_models_options(data.get("models", {})))
    options.update(_cache_options(data.get("cache", {})))

    if "url" in (database := data.get("database", {})):
        options["database_url"] = _typed(database["url"], "database.url", str)

    if "timeout" in (analysis := data.get("analysis", {})):
        timeout = _typed(analysis["timeout"], "analysis.timeout", (int, float))
        options["analysis_timeout"] = float(timeout) if timeout > 0 else None

    if "prepend_sys_path" in data:
        options["prepend_sys_path"] = _strings(
            data["prepend_sys_path"],
            "prepend_sys_path",
        )

    if base_path is not None:
        options["base_path"] = base_path

    unknown = set(data) - {"models", "cache", "database", "analysis", "prepend_sys_path"}
    if unknown:
        msg = f"Unknown configuration sections: {', '.join(sorted(unknown))}"
        raise ValueError(msg)

    return ErdConfig(**options)


def find_config_file(directory: Path) -> Path | None:
    """Return the first default configuration file present in directory."""
    return next(
        (
            directory / name
            for name in DEFAULT_CONFIG_FILES
            if (directory / name).is_file()
        ),
        None,
    )


def load_config(path: Path | None = None) -> ErdConfig:
    """Load configuration from erd.toml or the [tool.erd] table of pyproject.toml.

    Without a path the current directory is searched; without any file the
    defaults apply. Relative model paths resolve against the file's directory.
    """
    if path is None and (path := find_config_file(Path.cwd())) is None:
        return ErdConfig()

    with path.open("rb") as f:
        data = load(f)

    if path.name == "pyproject.toml":
        data = data.get("tool", {}).get("erd", {})

    return config_from_dict(data, base_path=path.parent.resolve())

