"""
Ready-made directives.

These are ordinary constructors: nothing is registered automatically.
Register them like any user directive and declare them in the document.

    directive @deprecated(reason: String = "No longer supported")
        on FIELD_DEFINITION | ENUM_VALUE

    directive @value(string: String, int: Int, bool: Boolean, arg: String)
        on FIELD_DEFINITION | ENUM_VALUE

Usage:
    engine.register_directives(*builtin_definitions())
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import (
    Arguments,
    DirectiveDefinition,
    EnumValueConfig,
    ExecuteResult,
    FieldConfig,
    TargetKind,
)

if TYPE_CHECKING:
    from graphcast.context import RequestContext


class Deprecated:
    """Marks a field or enum value as deprecated. Values pass through unchanged."""

    def __init__(self, reason: str):
        self.reason = reason

    def execute(
        self,
        context: RequestContext,
        source: Any,
        value: Any,
        arguments: Arguments,
    ) -> ExecuteResult:
        return value, context

    def define(self, target: TargetKind, config: FieldConfig | EnumValueConfig) -> None:
        config.deprecation_reason = self.reason


def new_deprecated(arguments: Arguments, node_kind: str) -> Deprecated:
    reason = arguments.get("reason")
    if reason is None:
        raise ValueError("reason should be defined")
    if not isinstance(reason, str):
        raise TypeError(f"reason should be a string, got {type(reason).__name__}")
    return Deprecated(reason)


class Value:
    """
    Resolves to a fixed value.

    On an enum value, define() replaces the value's runtime representation
    with the literal. On a field, execute() resolves to the literal, or to
    the field argument named by ``arg``.
    """

    KINDS: dict[str, type] = {
        "string": str,
        "int": int,
        "bool": bool,
        "arg": str,
    }

    def __init__(self, kind: str, literal: Any):
        self.kind = kind
        self.literal = literal

    def resolve(self, arguments: Arguments) -> Any:
        if self.kind == "arg":
            return arguments.get(self.literal)
        return self.literal

    def execute(
        self,
        context: RequestContext,
        source: Any,
        value: Any,
        arguments: Arguments,
    ) -> ExecuteResult:
        return self.resolve(arguments), context

    def define(self, target: TargetKind, config: FieldConfig | EnumValueConfig) -> None:
        if target is not TargetKind.ENUM_VALUE:
            return
        if self.kind == "arg":
            raise ValueError("'arg' has no meaning on an enum value")
        config.value = self.literal


def new_value(arguments: Arguments, node_kind: str) -> Value:
    unknown = [key for key in arguments if key not in Value.KINDS]
    if unknown:
        raise ValueError(f"unknown argument: {unknown[0]}")
    if len(arguments) != 1:
        raise ValueError("exactly one of string, int, bool or arg should be given")

    (kind, literal), = arguments.items()
    expected = Value.KINDS[kind]
    # bool is a subclass of int
    if not isinstance(literal, expected) or (kind == "int" and isinstance(literal, bool)):
        raise TypeError(f"'{kind}' expects {expected.__name__}, got {type(literal).__name__}")
    return Value(kind, literal)


def builtin_definitions() -> list[DirectiveDefinition]:
    """Definitions for @deprecated and @value, ready to register."""
    return [
        DirectiveDefinition("deprecated", new_deprecated),
        DirectiveDefinition("value", new_value),
    ]
