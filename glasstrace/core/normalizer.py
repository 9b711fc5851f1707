"""Input normalizer — turns user trace input into a canonical plan.

Normalization runs in three steps:

1. ``flatten`` walks the input depth-first, expanding ``App`` entries to
   their declared modules and ``Callback`` entries to whatever their
   function returns, splicing results in place.
2. ``ensure_pattern`` prepends the wildcard pattern when the flattened
   list holds only scopes (or nothing at all).
3. ``ensure_scope`` prepends ``Scope([processes])`` when no scope is given.

Defaults are applied after flattening, so modules produced by bundles and
callbacks count as patterns.
"""

from __future__ import annotations

import logging
from types import ModuleType
from typing import Any, Iterable

from glasstrace.core.bundles import BundleSource, DistributionBundles
from glasstrace.models.plan import WILDCARD, App, Callback, PlanEntry, Scope, ScopeSelector

logger = logging.getLogger(__name__)


def flatten(raw_input: Iterable[Any], bundles: BundleSource | None = None) -> list[Any]:
    """Flatten nested and dynamic input into a single ordered list.

    Examples
    --------
    >>> flatten(["a", ["b", ["c"]], "d"])
    ['a', 'b', 'c', 'd']
    """
    if bundles is None:
        bundles = DistributionBundles()
    flat: list[Any] = []
    _flatten_into(raw_input, bundles, flat)
    return flat


def _flatten_into(items: Iterable[Any], bundles: BundleSource, flat: list[Any]) -> None:
    for item in items:
        if isinstance(item, App):
            if not bundles.load(item.name):
                logger.warning("Bundle %r could not be loaded; skipping", item.name)
            units = bundles.units(item.name)
            logger.debug("Bundle %r expands to %d module(s)", item.name, len(units))
            flat.extend(units)
        elif isinstance(item, Callback):
            produced = item.invoke()
            if not isinstance(produced, (list, tuple)):
                produced = [produced]
            logger.debug("Callback %s produced %d entr(ies)", item, len(produced))
            _flatten_into(produced, bundles, flat)
        elif isinstance(item, (list, tuple)):
            _flatten_into(item, bundles, flat)
        elif isinstance(item, ModuleType):
            flat.append(item.__name__)
        else:
            flat.append(item)


def is_scope(entry: Any) -> bool:
    return isinstance(entry, Scope)


def ensure_pattern(entries: list[Any]) -> list[Any]:
    """Prepend the wildcard when every entry is a scope."""
    if all(is_scope(entry) for entry in entries):
        return [WILDCARD, *entries]
    return entries


def ensure_scope(entries: list[Any]) -> list[Any]:
    """Prepend ``Scope([processes])`` when no entry is a scope."""
    if not any(is_scope(entry) for entry in entries):
        return [Scope([ScopeSelector.PROCESSES]), *entries]
    return entries


def normalize(raw_input: Any, bundles: BundleSource | None = None) -> list[PlanEntry]:
    """Return the canonical plan for *raw_input*.

    A bare entry (anything that is not a list or tuple) is treated as a
    one-element list.  The result always holds at least one scope and at
    least one pattern.
    """
    if not isinstance(raw_input, (list, tuple)):
        raw_input = [raw_input]
    return ensure_scope(ensure_pattern(flatten(raw_input, bundles)))
