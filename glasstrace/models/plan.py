"""Trace input grammar — scopes, bundles, callbacks and the wildcard pattern.

A trace input is a (possibly nested) list mixing:

* ``Scope(carriers)`` — which carriers (threads, I/O handles, selectors)
  to observe;
* module names or module objects — which code units' calls to observe;
* ``App(name)`` — every module an installed distribution declares;
* ``Callback(module, function)`` — a function returning more trace input,
  resolved once at normalization time.

After normalization only ``Scope`` entries and module names (or
``WILDCARD``) remain.
"""

from __future__ import annotations

import importlib
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, field_validator

#: Pattern matching every code unit.
WILDCARD = "_"


class ScopeSelector(str, Enum):
    """Symbolic carrier groups accepted inside a ``Scope``."""

    ALL = "all"
    PROCESSES = "processes"
    PORTS = "ports"
    EXISTING = "existing"
    EXISTING_PROCESSES = "existing_processes"
    EXISTING_PORTS = "existing_ports"
    NEW = "new"
    NEW_PROCESSES = "new_processes"
    NEW_PORTS = "new_ports"


# Selector groups, by which carriers they cover.
EXISTING_PROCESS_SELECTORS = frozenset({
    ScopeSelector.ALL,
    ScopeSelector.PROCESSES,
    ScopeSelector.EXISTING,
    ScopeSelector.EXISTING_PROCESSES,
})
NEW_PROCESS_SELECTORS = frozenset({
    ScopeSelector.ALL,
    ScopeSelector.NEW,
    ScopeSelector.NEW_PROCESSES,
})
PORT_SELECTORS = frozenset({
    ScopeSelector.ALL,
    ScopeSelector.PORTS,
    ScopeSelector.EXISTING,
    ScopeSelector.EXISTING_PORTS,
    ScopeSelector.NEW,
    ScopeSelector.NEW_PORTS,
})


class Port(BaseModel):
    """Reference to an I/O handle carrier (file descriptor, socket, ...)."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    handle: Any

    def __init__(self, handle: Any, **data: Any) -> None:
        super().__init__(handle=handle, **data)


class Scope(BaseModel):
    """A tagged list of carriers to observe.

    Strings naming a ``ScopeSelector`` are coerced to the enum member;
    anything else is kept as given and validated by the host when the
    plan is applied.

    Examples
    --------
    >>> Scope(["processes"]) == Scope([ScopeSelector.PROCESSES])
    True
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    carriers: tuple[Any, ...] = ()

    def __init__(self, carriers: Any = (), **data: Any) -> None:
        super().__init__(carriers=carriers, **data)

    @field_validator("carriers", mode="before")
    @classmethod
    def _coerce_selectors(cls, value: Any) -> tuple[Any, ...]:
        if isinstance(value, (str, ScopeSelector)) or not isinstance(value, (list, tuple)):
            value = [value]
        coerced: list[Any] = []
        for carrier in value:
            if isinstance(carrier, str) and not isinstance(carrier, ScopeSelector):
                try:
                    carrier = ScopeSelector(carrier)
                except ValueError:
                    pass
            coerced.append(carrier)
        return tuple(coerced)


class App(BaseModel):
    """An installed distribution whose modules should all be traced."""

    model_config = ConfigDict(frozen=True)

    name: str

    def __init__(self, name: str, **data: Any) -> None:
        super().__init__(name=name, **data)


class Callback(BaseModel):
    """A ``module:function`` reference producing more trace input."""

    model_config = ConfigDict(frozen=True)

    module: str
    function: str

    def __init__(self, module: str, function: str, **data: Any) -> None:
        super().__init__(module=module, function=function, **data)

    @classmethod
    def parse(cls, ref: str) -> Callback:
        """Build a callback from a ``"package.module:function"`` string."""
        module, sep, function = ref.partition(":")
        if not sep or not module or not function:
            raise ValueError(f"Callback reference must look like 'module:function', got {ref!r}")
        return cls(module, function)

    def invoke(self) -> Any:
        """Import the module and call the function with no arguments."""
        target = importlib.import_module(self.module)
        return getattr(target, self.function)()

    def __str__(self) -> str:
        return f"{self.module}:{self.function}"


#: An entry of a canonical plan.
PlanEntry = Union[Scope, str]
