"""
Scalar registration for graphcast.

The registry starts with graphql-core's specified scalars (String, Int,
Float, Boolean, ID) and, unless disabled in settings, an ISO-8601
DateTime scalar. Custom scalars are registered from a ScalarConfig and
must be registered for every ``scalar X`` the document declares.

Registering the same name again replaces the previous scalar.

Example:
    registry.register(ScalarConfig(
        name="Upper",
        serialize=lambda value: str(value).upper(),
        parse_value=lambda value: str(value).upper(),
    ))
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any

from graphql import GraphQLScalarType, specified_scalar_types
from graphql.language import StringValueNode, ValueNode

from .errors import RegistryFrozen

logger = logging.getLogger(__name__)

SerializeFn = Callable[[Any], Any]
ParseValueFn = Callable[[Any], Any]
# Called as parse_literal(value_node, variables=None)
ParseLiteralFn = Callable[..., Any]


@dataclass(frozen=True, slots=True)
class ScalarConfig:
    """
    Behavior of a custom scalar.

    Omitted callables fall back to graphql-core's defaults: identity for
    serialize and parse_value, and parse_value applied to the untyped
    literal for parse_literal.
    """

    name: str
    serialize: SerializeFn | None = None
    parse_value: ParseValueFn | None = None
    parse_literal: ParseLiteralFn | None = None
    description: str | None = None

    def build(self) -> GraphQLScalarType:
        """Create the graphql-core scalar type."""
        kwargs: dict[str, Any] = {"name": self.name, "description": self.description}
        if self.serialize is not None:
            kwargs["serialize"] = self.serialize
        if self.parse_value is not None:
            kwargs["parse_value"] = self.parse_value
        if self.parse_literal is not None:
            kwargs["parse_literal"] = self.parse_literal
        return GraphQLScalarType(**kwargs)


# =============================================================================
# DateTime
# =============================================================================


def _serialize_datetime(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str):
        return datetime.fromisoformat(value).isoformat()
    raise TypeError(f"DateTime cannot represent value: {value!r}")


def _parse_datetime(value: Any) -> datetime:
    if not isinstance(value, str):
        raise TypeError(f"DateTime cannot represent non-string value: {value!r}")
    return datetime.fromisoformat(value)


def _parse_datetime_literal(
    value_node: ValueNode,
    _variables: dict[str, Any] | None = None,
) -> datetime:
    if not isinstance(value_node, StringValueNode):
        raise TypeError("DateTime literals must be strings")
    return datetime.fromisoformat(value_node.value)


DATETIME_SCALAR = ScalarConfig(
    name="DateTime",
    description="An ISO-8601 encoded date and time",
    serialize=_serialize_datetime,
    parse_value=_parse_datetime,
    parse_literal=_parse_datetime_literal,
)


# =============================================================================
# Registry
# =============================================================================


class ScalarRegistry:
    """
    Name -> GraphQLScalarType map used by the materializer.

    Lookups during materialization check this registry first, so a
    scalar name shadows any other kind with the same name; the
    materializer reports such collisions.
    """

    def __init__(self, *, include_datetime: bool = True):
        self._scalars: dict[str, GraphQLScalarType] = dict(specified_scalar_types)
        self._builtin_names = frozenset(self._scalars)
        self._frozen = False
        if include_datetime:
            self.register(DATETIME_SCALAR)

    def register(self, scalar: ScalarConfig | GraphQLScalarType) -> GraphQLScalarType:
        """
        Register a scalar, replacing any previous one with the same name.

        Raises:
            RegistryFrozen: After the schema has been built
        """
        if self._frozen:
            raise RegistryFrozen("scalar registry", scalar.name)

        built = scalar.build() if isinstance(scalar, ScalarConfig) else scalar
        if built.name in self._scalars:
            logger.warning(f"[scalars] Replacing existing scalar: {built.name}")
        self._scalars[built.name] = built
        logger.debug(f"[scalars] Registered scalar: {built.name}")
        return built

    def get(self, name: str) -> GraphQLScalarType | None:
        return self._scalars.get(name)

    def has(self, name: str) -> bool:
        return name in self._scalars

    def is_specified(self, name: str) -> bool:
        """Check if a name is one of graphql-core's specified scalars."""
        return name in self._builtin_names

    @property
    def scalars(self) -> Mapping[str, GraphQLScalarType]:
        return MappingProxyType(self._scalars)

    @property
    def custom_scalars(self) -> list[GraphQLScalarType]:
        """Registered scalars that are not graphql-core's specified ones."""
        return [
            scalar for name, scalar in self._scalars.items() if name not in self._builtin_names
        ]

    def freeze(self) -> None:
        self._frozen = True

    def __len__(self) -> int:
        return len(self._scalars)
