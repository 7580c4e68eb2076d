"""
Directive Construction.

Turns the directive usages attached to one declaration site into
runtime directive instances:

1. Seed arguments from the directive declaration's defaults (only the
   arguments that declare an explicit default).
2. Overlay the usage-site arguments by name; usage values win.
3. Call the registered constructor with the merged mapping and the AST
   node kind of the site (e.g. "field_definition", "schema_definition").

Instances keep the document order of their usages. That order is the
execution order of the resulting chain.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from graphql import value_from_ast_untyped
from graphql.language import DirectiveNode, Node

from graphcast.declarations import DirectiveDeclaration
from graphcast.errors import (
    ConstructionError,
    UnregisteredDirective,
    UnsupportedDirectiveUsage,
)

from .base import BoundDirective, Directive
from .store import DirectiveStore, is_builtin

logger = logging.getLogger(__name__)


def merge_arguments(
    usage: DirectiveNode,
    declaration: DirectiveDeclaration | None,
) -> dict[str, Any]:
    """
    Merge declared defaults with usage-site argument values.

    Values are converted from AST literals to plain Python values.
    """
    arguments: dict[str, Any] = declaration.default_arguments() if declaration else {}
    for argument in usage.arguments or ():
        arguments[argument.name.value] = value_from_ast_untyped(argument.value)
    return arguments


class DirectiveFactory:
    """
    Builds directive instances for usage sites.

    Example:
        factory = DirectiveFactory(store, registry.directives)
        bound = factory.construct_all(
            field_node.directives,
            node=field_node,
            site="field 'Query.hello'",
        )
    """

    def __init__(
        self,
        store: DirectiveStore,
        declarations: Mapping[str, DirectiveDeclaration],
    ):
        self._store = store
        self._declarations = declarations

    def construct(self, usage: DirectiveNode, node: Node, site: str) -> BoundDirective:
        """
        Build the instance for one usage.

        Raises:
            UnsupportedDirectiveUsage: For a built-in directive outside its location
            UnregisteredDirective: If no constructor is bound to the name
            ConstructionError: If the constructor rejects the arguments
        """
        name = usage.name.value
        definition = self._store.get(name)
        if definition is None:
            if is_builtin(name):
                raise UnsupportedDirectiveUsage(name, site)
            raise UnregisteredDirective(name, site)

        arguments = merge_arguments(usage, self._declarations.get(name))

        try:
            instance = definition.construct(arguments, node.kind)
        except Exception as exc:
            raise ConstructionError(name, site, exc) from exc

        if not isinstance(instance, Directive):
            raise ConstructionError(
                name,
                site,
                TypeError(f"constructor returned {type(instance).__name__}, not a directive"),
            )

        logger.debug(f"[construction] Built @{name} for {site} with args={list(arguments)}")
        return BoundDirective(name=name, site=site, directive=instance)

    def construct_all(
        self,
        usages: Iterable[DirectiveNode] | None,
        node: Node,
        site: str,
    ) -> list[BoundDirective]:
        """Build instances for every usage at a site, in document order."""
        return [self.construct(usage, node, site) for usage in usages or ()]
