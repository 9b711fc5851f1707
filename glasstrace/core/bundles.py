"""Bundle metadata — which modules an ``App(name)`` entry expands to.

The default source reads installed distribution metadata through
``importlib.metadata``: the modules a distribution declares are the
``.py`` files listed in its RECORD, or its ``top_level.txt`` when no
file list is available.
"""

from __future__ import annotations

import logging
from importlib import metadata
from pathlib import PurePosixPath
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class BundleSource(Protocol):
    """Protocol for bundle metadata services."""

    def load(self, name: str) -> bool:
        """Make the bundle's metadata available; ``False`` if it is absent."""
        ...

    def units(self, name: str) -> list[str]:
        """Return the module names the bundle declares (empty if unknown)."""
        ...


def _module_name(path: PurePosixPath) -> str | None:
    if path.suffix != ".py":
        return None
    parts = list(path.with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    if not parts or not all(part.isidentifier() for part in parts):
        return None
    return ".".join(parts)


class DistributionBundles:
    """Bundle source backed by installed distributions."""

    def __init__(self) -> None:
        self._loaded: dict[str, metadata.Distribution] = {}

    def load(self, name: str) -> bool:
        if name in self._loaded:
            return True
        try:
            self._loaded[name] = metadata.distribution(name)
        except metadata.PackageNotFoundError:
            logger.debug("Distribution %r is not installed", name)
            return False
        return True

    def units(self, name: str) -> list[str]:
        if not self.load(name):
            return []
        dist = self._loaded[name]

        modules: list[str] = []
        for file in dist.files or []:
            module = _module_name(PurePosixPath(str(file)))
            if module is not None and module not in modules:
                modules.append(module)
        if modules:
            return modules

        top_level = dist.read_text("top_level.txt") or ""
        return [line.strip() for line in top_level.splitlines() if line.strip()]


class StaticBundles:
    """Bundle source with explicitly declared module lists.

    Examples
    --------
    >>> bundles = StaticBundles({"my_app": ["a", "b"]})
    >>> bundles.units("my_app")
    ['a', 'b']
    """

    def __init__(self, declared: dict[str, list[str]] | None = None) -> None:
        self._declared = {name: list(units) for name, units in (declared or {}).items()}

    def declare(self, name: str, units: list[str]) -> None:
        self._declared[name] = list(units)

    def load(self, name: str) -> bool:
        return name in self._declared

    def units(self, name: str) -> list[str]:
        return list(self._declared.get(name, []))
