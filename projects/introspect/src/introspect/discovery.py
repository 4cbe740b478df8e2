"""Discovery of SQLAlchemy-mapped classes under model search roots."""

from __future__ import annotations

import inspect
from importlib import import_module
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import inspect as sa_inspect

from introspect.associations import qualified_name

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path
    from types import ModuleType

logger = getLogger(__name__)


def load_class(name: str) -> type:
    """Resolve a fully-qualified class name to the class object."""
    module_name, _, class_name = name.rpartition(".")
    if not module_name:
        msg = f"Not a qualified class name: {name}"
        raise ValueError(msg)

    target = getattr(import_module(module_name), class_name, None)
    if not isinstance(target, type):
        msg = f"{name} is not a class"
        raise ImportError(msg)
    return target


def is_mapped_class(cls: type) -> bool:
    """Check if a class is a concrete SQLAlchemy-mapped class."""
    if inspect.isabstract(cls) or cls.__dict__.get("__abstract__", False):
        return False
    mapper = sa_inspect(cls, raiseerr=False)
    return mapper is not None and getattr(mapper, "class_", None) is cls


def module_name_for(path: Path, root: Path, namespace: str) -> str:
    """Map a source file below root onto a dotted module name."""
    parts = list(path.relative_to(root).with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(part for part in (namespace, *parts) if part)


def _source_files(root: Path) -> Iterator[Path]:
    try:
        yield from sorted(root.rglob("*.py"))
    except OSError as e:
        logger.warning("Cannot scan model path %s: %s", root, e)


def _import(module_name: str) -> ModuleType | None:
    try:
        return import_module(module_name)
    except Exception as e:  # noqa: BLE001
        # Model modules run arbitrary import-time code
        logger.warning("Skipping module %s: %s", module_name, e)
        return None


def _mapped_classes(module: ModuleType) -> Iterator[type]:
    for _, member in inspect.getmembers(module, inspect.isclass):
        if member.__module__ == module.__name__ and is_mapped_class(member):
            yield member


class ClassDiscoverer:
    """Finds mapped classes by importing every module below the search roots."""

    def discover(
        self,
        roots: Iterable[Path],
        namespace: str,
        excluded: Iterable[str] = (),
    ) -> list[str]:
        """Return sorted qualified names of concrete mapped classes."""
        excluded_names = {name for name in excluded if name.strip()}
        found: set[str] = set()

        for root in roots:
            if not root.is_dir():
                logger.info("Model path does not exist: %s", root)
                continue

            for path in _source_files(root):
                module = _import(module_name_for(path, root, namespace))
                if module is None:
                    continue
                for cls in _mapped_classes(module):
                    name = qualified_name(cls)
                    if cls.__name__ in excluded_names or name in excluded_names:
                        logger.debug("Excluding model %s", name)
                        continue
                    found.add(name)

        return sorted(found)
