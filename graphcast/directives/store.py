"""
Directive Declaration Store.

Maps directive names to the constructors that build their runtime
instances. Exactly one constructor may be bound per name.

Built-in directives:
    A small fixed allow-list of names receives built-in handling during
    materialization and never needs a constructor:

    - enumPrivacy: required marker on enum types
      (``@enumPrivacy(backend: Boolean, frontend: Boolean)``)
    - enumVal: aliases an enum value to a string (``@enumVal(str: String)``)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from graphcast.errors import (
    DirectiveAlreadyRegistered,
    RegistryFrozen,
    UndeclaredDirectiveConstructor,
)

from .base import DirectiveConstructor, DirectiveDefinition

logger = logging.getLogger(__name__)

ENUM_PRIVACY = "enumPrivacy"
ENUM_VAL = "enumVal"

BUILTIN_DIRECTIVES: frozenset[str] = frozenset({ENUM_PRIVACY, ENUM_VAL})


def is_builtin(name: str) -> bool:
    """Check if a directive name has built-in handling."""
    return name in BUILTIN_DIRECTIVES


class DirectiveStore:
    """
    Registry of directive constructors.

    Constructors are registered at startup and read-only once the schema
    has been built.

    Example:
        store = DirectiveStore()
        store.register_constructor(DirectiveDefinition("upper", new_upper))

        definition = store.get("upper")
        store.validate_all_declared(["upper", "enumVal"])
    """

    def __init__(self) -> None:
        self._definitions: dict[str, DirectiveDefinition] = {}
        self._frozen = False

    def register_constructor(self, definition: DirectiveDefinition) -> None:
        """
        Bind a constructor to a directive name.

        Raises:
            DirectiveAlreadyRegistered: If the name is already bound
            RegistryFrozen: After the schema has been built
        """
        if self._frozen:
            raise RegistryFrozen("directive store", definition.name)
        if definition.name in self._definitions:
            raise DirectiveAlreadyRegistered(definition.name)
        if not callable(definition.constructor):
            raise TypeError(f"constructor for @{definition.name} is not callable")

        self._definitions[definition.name] = definition
        logger.info(f"[directive_store] Registered directive: @{definition.name}")

    def register(self, name: str, constructor: DirectiveConstructor) -> DirectiveDefinition:
        """Shorthand for register_constructor(DirectiveDefinition(name, constructor))."""
        definition = DirectiveDefinition(name, constructor)
        self.register_constructor(definition)
        return definition

    def get(self, name: str) -> DirectiveDefinition | None:
        return self._definitions.get(name)

    def has(self, name: str) -> bool:
        return name in self._definitions

    def is_known(self, name: str) -> bool:
        """Check if a usage of this name can be handled at all."""
        return name in self._definitions or is_builtin(name)

    @property
    def registered_names(self) -> list[str]:
        return list(self._definitions)

    def validate_all_declared(self, declared_names: Iterable[str]) -> None:
        """
        Check that every declared directive can be constructed.

        Raises:
            UndeclaredDirectiveConstructor: For the first declared name with
                neither a constructor nor built-in handling
        """
        for name in declared_names:
            if name in self._definitions:
                continue
            if is_builtin(name):
                logger.debug(f"[directive_store] @{name} handled as built-in")
                continue
            raise UndeclaredDirectiveConstructor(name)

    def freeze(self) -> None:
        self._frozen = True

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"DirectiveStore(directives={self.registered_names})"
