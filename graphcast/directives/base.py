"""
Directive abstractions for graphcast.

A directive instance is a capability record rather than a class
hierarchy. Anything with an ``execute`` method is a Directive; anything
that also has a ``define`` method can alter the static schema when the
usage site is materialized.

    execute(context, source, value, arguments) -> (value, context)
        Runs at request time. May return an awaitable of the tuple.
        Raise StopExecution to end the chain without an error.
        Raise ExecutionHalt (or anything else) to fail the chain.

    define(target, config) -> None
        Runs once per usage site at build time, before any request.
        Mutates the in-progress FieldConfig or EnumValueConfig.

Directive instances are produced by constructors registered under a
name. A constructor receives the merged argument mapping and the kind
of the AST node the usage is attached to:

    def new_greeting(arguments: Arguments, node_kind: str) -> Directive:
        if node_kind != "field_definition":
            raise ValueError("only fields can be greeted")
        return Greeting(arguments["text"])

    engine.register_directive("greeting", new_greeting)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from graphcast.context import RequestContext

Arguments = Mapping[str, Any]

ExecuteResult = tuple[Any, "RequestContext"]


class TargetKind(Enum):
    """What a define hook is being applied to."""

    FIELD = "field"
    ENUM_VALUE = "enum_value"


# =============================================================================
# Define targets
# =============================================================================


@dataclass
class FieldConfig:
    """Mutable configuration of an object field while it is being built."""

    name: str
    owner: str
    description: str | None = None
    deprecation_reason: str | None = None
    extensions: dict[str, Any] = field(default_factory=dict)


@dataclass
class EnumValueConfig:
    """Mutable configuration of an enum value while it is being built."""

    name: str
    owner: str
    value: Any = None
    description: str | None = None
    deprecation_reason: str | None = None


# =============================================================================
# Capabilities
# =============================================================================


@runtime_checkable
class Directive(Protocol):
    """Runtime half of a directive: transforms a value, threads context."""

    def execute(
        self,
        context: RequestContext,
        source: Any,
        value: Any,
        arguments: Arguments,
    ) -> ExecuteResult | Awaitable[ExecuteResult]:
        ...


@runtime_checkable
class Definable(Protocol):
    """Build-time half of a directive: edits static configuration."""

    def define(self, target: TargetKind, config: FieldConfig | EnumValueConfig) -> None:
        ...


DirectiveConstructor = Callable[[Arguments, str], Directive]


# =============================================================================
# Control flow
# =============================================================================

_UNCHANGED = object()


class StopExecution(Exception):
    """
    Raised by a directive to end its chain without an error.

    Works like ``break`` on the chain: remaining directives are skipped
    and the last produced value is final. A directive may hand over a
    final value of its own by passing it to the signal.

    Example:
        if value is None:
            raise StopExecution()          # keep the current value
        raise StopExecution(value.strip()) # finish with this value
    """

    def __init__(self, value: Any = _UNCHANGED):
        self.value = value
        super().__init__("stop execution without error")

    @property
    def has_value(self) -> bool:
        return self.value is not _UNCHANGED


# =============================================================================
# Registration records
# =============================================================================


@dataclass(frozen=True, slots=True)
class DirectiveDefinition:
    """A directive name bound to the constructor that builds its instances."""

    name: str
    constructor: DirectiveConstructor

    def construct(self, arguments: Arguments, node_kind: str) -> Directive:
        """Build one instance for a usage site."""
        return self.constructor(arguments, node_kind)


@dataclass(frozen=True, slots=True)
class BoundDirective:
    """A constructed directive instance tied to the usage site it came from."""

    name: str
    site: str
    directive: Directive

    def __repr__(self) -> str:
        return f"@{self.name} on {self.site}"
