"""
Field resolution for graphcast.

Every object field gets the same default lookup, wrapped by the field's
directive chain:

    initial = source[field_name] if source is a Mapping holding it, else None
    value, _ = chain(context, source, initial, field_arguments)

Resolvers follow graphql-core's ``(source, info, **arguments)`` signature.
The request context is read from ``info.context``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from inspect import isawaitable
from typing import Any

from graphql import GraphQLFieldResolver, GraphQLResolveInfo

from .context import RequestContext
from .directives.chain import ChainResult, DirectiveChain


def default_value(source: Any, field_name: str) -> Any:
    """Initial value of a field before its chain runs."""
    if isinstance(source, Mapping) and field_name in source:
        return source[field_name]
    return None


async def _await_value(pending: Awaitable[ChainResult]) -> Any:
    result = await pending
    return result.value


def make_field_resolver(chain: DirectiveChain) -> GraphQLFieldResolver:
    """
    Build the resolver for one field.

    Exceptions raised by the chain are left to graphql-core, which
    records them as this field's error and keeps resolving siblings.
    """

    def resolve(source: Any, info: GraphQLResolveInfo, **arguments: Any) -> Any:
        initial = default_value(source, info.field_name)
        if not chain:
            return initial

        context = RequestContext.coerce(info.context)
        result = chain.run(context, source, initial, arguments)
        if isawaitable(result):
            return _await_value(result)
        return result.value

    return resolve
