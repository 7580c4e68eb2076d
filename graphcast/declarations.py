"""
Declaration records for graphcast.

Declarations are immutable records extracted from a parsed SDL
document. They keep the original graphql-core AST nodes for the parts
the materializer needs (fields, arguments, directive usages) and
expose names and descriptions as plain strings.

Parsing itself is delegated to graphql-core:

    document = parse_document(schema_sdl, directives_sdl)
    for declaration in collect_declarations(document):
        registry.register(declaration)
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from graphql import GraphQLError, Source, parse, value_from_ast_untyped
from graphql.language import (
    DirectiveDefinitionNode,
    DirectiveNode,
    DocumentNode,
    EnumTypeDefinitionNode,
    EnumValueDefinitionNode,
    FieldDefinitionNode,
    InputObjectTypeDefinitionNode,
    InputValueDefinitionNode,
    Node,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    ScalarTypeDefinitionNode,
    SchemaDefinitionNode,
    UnionTypeDefinitionNode,
)

from .errors import DocumentSyntaxError, UnsupportedDeclaration

logger = logging.getLogger(__name__)


class DeclarationKind(Enum):
    """Kinds of declarations the registry partitions by."""

    OBJECT = "object"
    INPUT_OBJECT = "input object"
    ENUM = "enum"
    SCALAR = "scalar"
    UNION = "union"
    SCHEMA = "schema"
    DIRECTIVE = "directive"
    EXTENSION = "type extension"


def _description(node: Any) -> str | None:
    description = getattr(node, "description", None)
    return description.value if description else None


@dataclass(frozen=True, kw_only=True, slots=True)
class Declaration:
    """Base record: a named construct extracted from the document."""

    kind: ClassVar[DeclarationKind]

    name: str
    description: str | None = None
    directives: tuple[DirectiveNode, ...] = ()
    node: Node | None = field(default=None, repr=False, compare=False)


@dataclass(frozen=True, kw_only=True, slots=True)
class ObjectDeclaration(Declaration):
    kind: ClassVar[DeclarationKind] = DeclarationKind.OBJECT

    fields: tuple[FieldDefinitionNode, ...] = ()


@dataclass(frozen=True, kw_only=True, slots=True)
class InputObjectDeclaration(Declaration):
    kind: ClassVar[DeclarationKind] = DeclarationKind.INPUT_OBJECT

    fields: tuple[InputValueDefinitionNode, ...] = ()


@dataclass(frozen=True, kw_only=True, slots=True)
class EnumDeclaration(Declaration):
    kind: ClassVar[DeclarationKind] = DeclarationKind.ENUM

    values: tuple[EnumValueDefinitionNode, ...] = ()


@dataclass(frozen=True, kw_only=True, slots=True)
class ScalarDeclaration(Declaration):
    kind: ClassVar[DeclarationKind] = DeclarationKind.SCALAR


@dataclass(frozen=True, kw_only=True, slots=True)
class UnionDeclaration(Declaration):
    kind: ClassVar[DeclarationKind] = DeclarationKind.UNION

    members: tuple[str, ...] = ()


@dataclass(frozen=True, kw_only=True, slots=True)
class SchemaDeclaration(Declaration):
    """
    The schema definition block.

    operation_types keeps (operation, type name) pairs in document order,
    e.g. (("query", "Query"), ("mutation", "Mutation")).
    """

    kind: ClassVar[DeclarationKind] = DeclarationKind.SCHEMA

    name: str = "schema"
    operation_types: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True, kw_only=True, slots=True)
class DirectiveDeclaration(Declaration):
    """
    Declares the shape a directive usage must satisfy.

    Does not execute anything: execution belongs to the instance built
    by the constructor registered under the same name.
    """

    kind: ClassVar[DeclarationKind] = DeclarationKind.DIRECTIVE

    arguments: tuple[InputValueDefinitionNode, ...] = ()
    locations: tuple[str, ...] = ()
    repeatable: bool = False

    def default_arguments(self) -> dict[str, Any]:
        """Arguments with an explicit default value, converted to Python values."""
        return {
            argument.name.value: value_from_ast_untyped(argument.default_value)
            for argument in self.arguments
            if argument.default_value is not None
        }


@dataclass(frozen=True, kw_only=True, slots=True)
class TypeExtension(Declaration):
    """Fields added to an object type by an ``extend type`` block."""

    kind: ClassVar[DeclarationKind] = DeclarationKind.EXTENSION

    fields: tuple[FieldDefinitionNode, ...] = ()


# =============================================================================
# Parsing & collection
# =============================================================================


def parse_document(*sources: str | Source) -> DocumentNode:
    """
    Parse one or more declaration sources as a single document.

    Sources are joined with newlines before parsing, so declarations
    split across several buffers may reference each other freely.

    Raises:
        DocumentSyntaxError: If graphql-core rejects the joined text
    """
    body = "\n".join(
        source.body if isinstance(source, Source) else source for source in sources
    )
    try:
        document = parse(body, no_location=False)
    except GraphQLError as exc:
        raise DocumentSyntaxError(exc.message) from exc

    logger.debug(
        f"[declarations] Parsed {len(sources)} source(s) into "
        f"{len(document.definitions)} definition(s)"
    )
    return document


def collect_declarations(document: DocumentNode) -> Iterator[Declaration]:
    """
    Convert every definition of a parsed document into a Declaration.

    Raises:
        UnsupportedDeclaration: For interfaces, non-object extensions,
            schema extensions and executable definitions
    """
    for node in document.definitions:
        yield declaration_from_node(node)


def declaration_from_node(node: Node) -> Declaration:
    """Build the Declaration matching one definition node."""
    if isinstance(node, ObjectTypeExtensionNode):
        if node.interfaces:
            raise UnsupportedDeclaration("interface implementation", node.name.value)
        return TypeExtension(
            name=node.name.value,
            directives=tuple(node.directives or ()),
            fields=tuple(node.fields or ()),
            node=node,
        )

    if isinstance(node, ObjectTypeDefinitionNode):
        if node.interfaces:
            raise UnsupportedDeclaration("interface implementation", node.name.value)
        return ObjectDeclaration(
            name=node.name.value,
            description=_description(node),
            directives=tuple(node.directives or ()),
            fields=tuple(node.fields or ()),
            node=node,
        )

    if isinstance(node, InputObjectTypeDefinitionNode):
        return InputObjectDeclaration(
            name=node.name.value,
            description=_description(node),
            directives=tuple(node.directives or ()),
            fields=tuple(node.fields or ()),
            node=node,
        )

    if isinstance(node, EnumTypeDefinitionNode):
        return EnumDeclaration(
            name=node.name.value,
            description=_description(node),
            directives=tuple(node.directives or ()),
            values=tuple(node.values or ()),
            node=node,
        )

    if isinstance(node, ScalarTypeDefinitionNode):
        return ScalarDeclaration(
            name=node.name.value,
            description=_description(node),
            directives=tuple(node.directives or ()),
            node=node,
        )

    if isinstance(node, UnionTypeDefinitionNode):
        return UnionDeclaration(
            name=node.name.value,
            description=_description(node),
            directives=tuple(node.directives or ()),
            members=tuple(member.name.value for member in node.types or ()),
            node=node,
        )

    if isinstance(node, SchemaDefinitionNode):
        return SchemaDeclaration(
            description=_description(node),
            directives=tuple(node.directives or ()),
            operation_types=tuple(
                (operation_type.operation.value, operation_type.type.name.value)
                for operation_type in node.operation_types or ()
            ),
            node=node,
        )

    if isinstance(node, DirectiveDefinitionNode):
        return DirectiveDeclaration(
            name=node.name.value,
            description=_description(node),
            arguments=tuple(node.arguments or ()),
            locations=tuple(location.value for location in node.locations or ()),
            repeatable=node.repeatable,
            node=node,
        )

    name_node = getattr(node, "name", None)
    raise UnsupportedDeclaration(node.kind, name_node.value if name_node else None)
