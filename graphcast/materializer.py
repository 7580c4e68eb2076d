"""
Type Materializer for graphcast.

Turns the registry's declarations into graphql-core types in two phases.

Allocation:
    One placeholder per object, input object, enum and union. Object,
    input-object and union types are created immediately against a thunk
    over the placeholder's (still empty) member map, so any field can
    reference any declared name regardless of declaration order or
    cycles. Enum placeholders only hold a value map; their type is
    created during the fill phase.

Fill:
    1. Enums (their values never reference other types)
    2. Input objects: field types first, then default values once every
       input object has its fields
    3. Objects: base fields first, then extension fields
    4. Union members

Named-type references are unwrapped from NonNull/List and looked up
across scalars, objects, input objects, enums and unions in that order.
Names are unique across kinds, which is enforced during allocation.

Example:
    factory = DirectiveFactory(store, registry.directives)
    types = TypeMaterializer(registry, factory, scalars, settings).materialize()
    types.objects["Query"].fields["hello"].resolve
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from graphql import (
    GraphQLArgument,
    GraphQLDirective,
    GraphQLEnumType,
    GraphQLEnumValue,
    GraphQLField,
    GraphQLInputField,
    GraphQLInputObjectType,
    GraphQLInputType,
    GraphQLList,
    GraphQLNamedType,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLOutputType,
    GraphQLScalarType,
    GraphQLType,
    GraphQLUnionType,
    Undefined,
    is_input_type,
    is_output_type,
    value_from_ast,
    value_from_ast_untyped,
)
from graphql.language import (
    DirectiveLocation,
    DirectiveNode,
    EnumValueDefinitionNode,
    FieldDefinitionNode,
    InputValueDefinitionNode,
    ListTypeNode,
    NonNullTypeNode,
    TypeNode,
)

from .config import Settings
from .declarations import (
    DirectiveDeclaration,
    EnumDeclaration,
    InputObjectDeclaration,
    ObjectDeclaration,
    UnionDeclaration,
)
from .directives.base import (
    BoundDirective,
    Definable,
    EnumValueConfig,
    FieldConfig,
    TargetKind,
)
from .directives.chain import DirectiveChain
from .directives.construction import DirectiveFactory
from .directives.store import ENUM_PRIVACY, ENUM_VAL
from .errors import (
    DeclarationError,
    DefineError,
    TypeNameCollision,
    UndefinedScalar,
    UnknownNamedType,
    UnsupportedDirectiveUsage,
)
from .registry import DefinitionRegistry
from .resolvers import make_field_resolver
from .scalars import ScalarRegistry

logger = logging.getLogger(__name__)


# =============================================================================
# Placeholders
# =============================================================================


@dataclass(slots=True)
class _ObjectPlaceholder:
    declaration: ObjectDeclaration
    fields: dict[str, GraphQLField] = field(default_factory=dict)
    chains: dict[str, DirectiveChain] = field(default_factory=dict)
    type: GraphQLObjectType | None = None


@dataclass(slots=True)
class _InputObjectPlaceholder:
    declaration: InputObjectDeclaration
    fields: dict[str, GraphQLInputField] = field(default_factory=dict)
    type: GraphQLInputObjectType | None = None


@dataclass(slots=True)
class _EnumPlaceholder:
    declaration: EnumDeclaration
    values: dict[str, GraphQLEnumValue] = field(default_factory=dict)
    type: GraphQLEnumType | None = None


@dataclass(slots=True)
class _UnionPlaceholder:
    declaration: UnionDeclaration
    members: list[GraphQLObjectType] = field(default_factory=list)
    type: GraphQLUnionType | None = None


# =============================================================================
# Result
# =============================================================================


@dataclass(frozen=True, slots=True)
class MaterializedTypes:
    """Every named type built from the registry, plus the field chains."""

    objects: Mapping[str, GraphQLObjectType]
    input_objects: Mapping[str, GraphQLInputObjectType]
    enums: Mapping[str, GraphQLEnumType]
    unions: Mapping[str, GraphQLUnionType]
    scalars: Mapping[str, GraphQLScalarType]
    field_chains: Mapping[str, DirectiveChain]

    def named_types(self) -> list[GraphQLNamedType]:
        """All declared types, for GraphQLSchema(types=...)."""
        return [
            *self.scalars.values(),
            *self.enums.values(),
            *self.input_objects.values(),
            *self.objects.values(),
            *self.unions.values(),
        ]

    def chain_for(self, owner: str, field_name: str) -> DirectiveChain:
        return self.field_chains[f"{owner}.{field_name}"]


# =============================================================================
# Materializer
# =============================================================================


class TypeMaterializer:
    """
    Two-phase builder of graphql-core types.

    Single use: create one per schema build. The first failure aborts
    the build and nothing built so far is kept.
    """

    def __init__(
        self,
        registry: DefinitionRegistry,
        factory: DirectiveFactory,
        scalars: ScalarRegistry,
        settings: Settings,
    ):
        self._registry = registry
        self._factory = factory
        self._scalars = scalars
        self._settings = settings

        self._objects: dict[str, _ObjectPlaceholder] = {}
        self._input_objects: dict[str, _InputObjectPlaceholder] = {}
        self._enums: dict[str, _EnumPlaceholder] = {}
        self._unions: dict[str, _UnionPlaceholder] = {}

    def materialize(self) -> MaterializedTypes:
        """
        Build every declared type.

        Raises:
            TypeNameCollision: If one name is declared as several kinds
            UndefinedScalar: If a declared scalar was never registered
            UnknownNamedType: If a type reference matches no declaration
            UnsupportedDirectiveUsage: For directives where no pipeline exists
            ConstructionError: If a directive constructor fails
            DefineError: If a define hook fails
            DeclarationError: For malformed declarations
        """
        self._check_collisions()
        declared_scalars = self._check_scalars()
        self._allocate()

        for placeholder in self._enums.values():
            self._fill_enum(placeholder)
        for placeholder in self._input_objects.values():
            self._fill_input_object(placeholder)
        for placeholder in self._input_objects.values():
            self._fill_input_defaults(placeholder)
        for placeholder in self._objects.values():
            self._fill_object(placeholder)
        for placeholder in self._unions.values():
            self._fill_union(placeholder)

        field_chains = {
            f"{owner}.{field_name}": chain
            for owner, placeholder in self._objects.items()
            for field_name, chain in placeholder.chains.items()
        }

        logger.info(
            f"[materializer] Materialized {len(self._objects)} object(s), "
            f"{len(self._input_objects)} input object(s), {len(self._enums)} enum(s), "
            f"{len(self._unions)} union(s)"
        )

        return MaterializedTypes(
            objects={name: p.type for name, p in self._objects.items()},
            input_objects={name: p.type for name, p in self._input_objects.items()},
            enums={name: p.type for name, p in self._enums.items()},
            unions={name: p.type for name, p in self._unions.items()},
            scalars=declared_scalars,
            field_chains=field_chains,
        )

    # -------------------------------------------------------------------------
    # Phase 1: allocation
    # -------------------------------------------------------------------------

    def _check_collisions(self) -> None:
        registry = self._registry
        kinds: dict[str, list[str]] = {}

        scalar_names = set(self._scalars.scalars) | set(registry.scalars)
        for name in scalar_names:
            kinds.setdefault(name, []).append("scalar")
        for kind, names in (
            ("object", registry.objects),
            ("input object", registry.input_objects),
            ("enum", registry.enums),
            ("union", registry.unions),
        ):
            for name in names:
                kinds.setdefault(name, []).append(kind)

        for name, found in kinds.items():
            if len(found) > 1:
                raise TypeNameCollision(name, tuple(found))

    def _check_scalars(self) -> dict[str, GraphQLScalarType]:
        declared: dict[str, GraphQLScalarType] = {}
        for name, declaration in self._registry.scalars.items():
            self._reject_directives(declaration.directives, f"scalar '{name}'")
            scalar = self._scalars.get(name)
            if scalar is None:
                raise UndefinedScalar(name)
            declared[name] = scalar
        return declared

    def _allocate(self) -> None:
        registry = self._registry

        for name in registry.extended_type_names:
            if name not in registry.objects:
                raise UnknownNamedType(name)
        for extension in registry.extensions:
            self._reject_directives(extension.directives, f"type extension '{extension.name}'")

        for name, declaration in registry.objects.items():
            self._reject_directives(declaration.directives, f"object '{name}'")
            placeholder = _ObjectPlaceholder(declaration)
            placeholder.type = GraphQLObjectType(
                name,
                fields=lambda p=placeholder: p.fields,
                description=declaration.description,
                ast_node=declaration.node,
                extension_ast_nodes=[
                    extension.node
                    for extension in registry.extensions
                    if extension.name == name
                ],
            )
            self._objects[name] = placeholder

        for name, declaration in registry.input_objects.items():
            self._reject_directives(declaration.directives, f"input object '{name}'")
            placeholder = _InputObjectPlaceholder(declaration)
            placeholder.type = GraphQLInputObjectType(
                name,
                fields=lambda p=placeholder: p.fields,
                description=declaration.description,
                ast_node=declaration.node,
            )
            self._input_objects[name] = placeholder

        for name, declaration in registry.enums.items():
            self._enums[name] = _EnumPlaceholder(declaration)

        for name, declaration in registry.unions.items():
            self._reject_directives(declaration.directives, f"union '{name}'")
            placeholder = _UnionPlaceholder(declaration)
            placeholder.type = GraphQLUnionType(
                name,
                types=lambda p=placeholder: p.members,
                description=declaration.description,
                ast_node=declaration.node,
            )
            self._unions[name] = placeholder

        logger.debug(
            f"[materializer] Allocated placeholders: objects={list(self._objects)}, "
            f"inputs={list(self._input_objects)}, enums={list(self._enums)}, "
            f"unions={list(self._unions)}"
        )

    @staticmethod
    def _reject_directives(directives: Iterable[DirectiveNode], site: str) -> None:
        for usage in directives or ():
            raise UnsupportedDirectiveUsage(usage.name.value, site)

    # -------------------------------------------------------------------------
    # Type references
    # -------------------------------------------------------------------------

    def named_type(self, name: str) -> GraphQLNamedType:
        """
        Look a terminal type name up across all kinds.

        Raises:
            UnknownNamedType: If nothing is declared or registered under the name
        """
        scalar = self._scalars.get(name)
        if scalar is not None:
            return scalar
        if name in self._objects:
            return self._objects[name].type
        if name in self._input_objects:
            return self._input_objects[name].type
        if name in self._enums:
            return self._enums[name].type
        if name in self._unions:
            return self._unions[name].type
        raise UnknownNamedType(name)

    def resolve_type(self, type_node: TypeNode) -> GraphQLType:
        """Rebuild NonNull/List wrappers around the terminal named type."""
        if isinstance(type_node, NonNullTypeNode):
            return GraphQLNonNull(self.resolve_type(type_node.type))
        if isinstance(type_node, ListTypeNode):
            return GraphQLList(self.resolve_type(type_node.type))
        return self.named_type(type_node.name.value)

    def _input_type(self, type_node: TypeNode, site: str) -> GraphQLInputType:
        resolved = self.resolve_type(type_node)
        if not is_input_type(resolved):
            raise DeclarationError(f"{site} must be an input type, got {resolved}")
        return resolved

    def _output_type(self, type_node: TypeNode, site: str) -> GraphQLOutputType:
        resolved = self.resolve_type(type_node)
        if not is_output_type(resolved):
            raise DeclarationError(f"{site} must be an output type, got {resolved}")
        return resolved

    def _default_value(
        self,
        node: InputValueDefinitionNode,
        type_: GraphQLInputType,
        site: str,
    ) -> Any:
        if node.default_value is None:
            return Undefined
        value = value_from_ast(node.default_value, type_)
        if value is Undefined:
            raise DeclarationError(f"invalid default value for {site}")
        return value

    # -------------------------------------------------------------------------
    # Phase 2: fill
    # -------------------------------------------------------------------------

    def _fill_enum(self, placeholder: _EnumPlaceholder) -> None:
        declaration = placeholder.declaration
        name = declaration.name
        privacy = self._enum_privacy(declaration)

        for node in declaration.values:
            value_name = node.name.value
            if value_name in placeholder.values:
                raise DeclarationError(f"enum value '{name}.{value_name}' declared more than once")
            config = self._enum_value_config(name, node)
            placeholder.values[value_name] = GraphQLEnumValue(
                config.value,
                description=config.description,
                deprecation_reason=config.deprecation_reason,
                ast_node=node,
            )

        placeholder.type = GraphQLEnumType(
            name,
            placeholder.values,
            description=declaration.description,
            ast_node=declaration.node,
            extensions={"privacy": privacy} if privacy is not None else None,
        )
        logger.debug(f"[materializer] Filled enum {name} with {len(placeholder.values)} value(s)")

    def _enum_privacy(self, declaration: EnumDeclaration) -> dict[str, bool] | None:
        """Read the @enumPrivacy marker of an enum declaration."""
        privacy: dict[str, bool] | None = None

        for usage in declaration.directives:
            directive_name = usage.name.value
            if directive_name != ENUM_PRIVACY:
                raise DeclarationError(
                    f"directive @{directive_name} is not allowed on enum '{declaration.name}'"
                )
            if privacy is not None:
                raise DeclarationError(
                    f"enum '{declaration.name}' has more than one @{ENUM_PRIVACY}"
                )

            arguments = _usage_arguments(usage)
            privacy = {}
            for flag in ("backend", "frontend"):
                flag_value = arguments.get(flag, False)
                if not isinstance(flag_value, bool):
                    raise DeclarationError(
                        f"@{ENUM_PRIVACY}({flag}:) on enum '{declaration.name}' "
                        "must be a boolean"
                    )
                privacy[flag] = flag_value

        if self._settings.require_enum_privacy:
            if privacy is None:
                raise DeclarationError(
                    f"enum '{declaration.name}' must be marked with @{ENUM_PRIVACY}"
                )
            if not any(privacy.values()):
                raise DeclarationError(
                    f"enum '{declaration.name}': @{ENUM_PRIVACY} needs backend or frontend enabled"
                )
        return privacy

    def _enum_value_config(self, owner: str, node: EnumValueDefinitionNode) -> EnumValueConfig:
        value_name = node.name.value
        site = f"enum value '{owner}.{value_name}'"
        config = EnumValueConfig(
            name=value_name,
            owner=owner,
            value=value_name,
            description=node.description.value if node.description else None,
        )

        for usage in node.directives or ():
            if usage.name.value == ENUM_VAL:
                alias = _usage_arguments(usage).get("str")
                if not isinstance(alias, str):
                    raise DeclarationError(f"@{ENUM_VAL} on {site} needs a string 'str' argument")
                config.value = alias
                continue

            bound = self._factory.construct(usage, node, site)
            self._apply_define(bound, TargetKind.ENUM_VALUE, config)

        return config

    def _fill_input_object(self, placeholder: _InputObjectPlaceholder) -> None:
        owner = placeholder.declaration.name

        for node in placeholder.declaration.fields:
            field_name = node.name.value
            site = f"input field '{owner}.{field_name}'"
            if field_name in placeholder.fields:
                raise DeclarationError(f"{site} declared more than once")
            self._reject_directives(node.directives, site)

            placeholder.fields[field_name] = GraphQLInputField(
                self._input_type(node.type, site),
                description=node.description.value if node.description else None,
                ast_node=node,
            )

        logger.debug(
            f"[materializer] Filled input object {owner} with {len(placeholder.fields)} field(s)"
        )

    def _fill_input_defaults(self, placeholder: _InputObjectPlaceholder) -> None:
        # Literal defaults read the fields of other input objects, which are
        # cached by graphql-core on first access.
        owner = placeholder.declaration.name
        for node in placeholder.declaration.fields:
            input_field = placeholder.fields[node.name.value]
            input_field.default_value = self._default_value(
                node, input_field.type, f"input field '{owner}.{node.name.value}'"
            )

    def _fill_object(self, placeholder: _ObjectPlaceholder) -> None:
        owner = placeholder.declaration.name
        field_nodes = [
            *placeholder.declaration.fields,
            *self._registry.extensions_for(owner),
        ]

        for node in field_nodes:
            field_name = node.name.value
            if field_name in placeholder.fields:
                raise DeclarationError(f"field '{owner}.{field_name}' declared more than once")
            placeholder.fields[field_name], placeholder.chains[field_name] = self._build_field(
                owner, node
            )

        logger.debug(
            f"[materializer] Filled object {owner} with {len(placeholder.fields)} field(s)"
        )

    def _build_field(
        self,
        owner: str,
        node: FieldDefinitionNode,
    ) -> tuple[GraphQLField, DirectiveChain]:
        field_name = node.name.value
        site = f"field '{owner}.{field_name}'"

        type_ = self._output_type(node.type, site)
        arguments = self._build_arguments(owner, field_name, node.arguments or ())

        bound = self._factory.construct_all(node.directives, node, site)
        config = FieldConfig(
            name=field_name,
            owner=owner,
            description=node.description.value if node.description else None,
        )
        for directive in bound:
            self._apply_define(directive, TargetKind.FIELD, config)

        chain = DirectiveChain(
            bound,
            site=site,
            log_errors=self._settings.log_resolution_errors,
        )
        graphql_field = GraphQLField(
            type_,
            args=arguments,
            resolve=make_field_resolver(chain),
            description=config.description,
            deprecation_reason=config.deprecation_reason,
            extensions=config.extensions or None,
            ast_node=node,
        )
        return graphql_field, chain

    def _build_arguments(
        self,
        owner: str,
        field_name: str,
        nodes: Iterable[InputValueDefinitionNode],
    ) -> dict[str, GraphQLArgument]:
        arguments: dict[str, GraphQLArgument] = {}
        for node in nodes:
            arg_name = node.name.value
            site = f"argument '{owner}.{field_name}({arg_name}:)'"
            if arg_name in arguments:
                raise DeclarationError(f"{site} declared more than once")
            self._reject_directives(node.directives, site)

            type_ = self._input_type(node.type, site)
            arguments[arg_name] = GraphQLArgument(
                type_,
                default_value=self._default_value(node, type_, site),
                description=node.description.value if node.description else None,
                ast_node=node,
            )
        return arguments

    def _fill_union(self, placeholder: _UnionPlaceholder) -> None:
        name = placeholder.declaration.name
        for member in placeholder.declaration.members:
            if member not in self._objects:
                known = (
                    member in self._input_objects
                    or member in self._enums
                    or self._scalars.has(member)
                )
                if known:
                    raise DeclarationError(f"union '{name}' member '{member}' is not an object type")
                raise UnknownNamedType(member)
            placeholder.members.append(self._objects[member].type)

    @staticmethod
    def _apply_define(
        bound: BoundDirective,
        target: TargetKind,
        config: FieldConfig | EnumValueConfig,
    ) -> None:
        if not isinstance(bound.directive, Definable):
            return
        try:
            bound.directive.define(target, config)
        except DefineError:
            raise
        except Exception as exc:
            raise DefineError(bound.name, bound.site, str(exc)) from exc

    # -------------------------------------------------------------------------
    # Directive declarations
    # -------------------------------------------------------------------------

    def build_directive(self, declaration: DirectiveDeclaration) -> GraphQLDirective:
        """Create the graphql-core definition of a declared directive."""
        arguments: dict[str, GraphQLArgument] = {}
        for node in declaration.arguments:
            site = f"argument '@{declaration.name}({node.name.value}:)'"
            type_ = self._input_type(node.type, site)
            arguments[node.name.value] = GraphQLArgument(
                type_,
                default_value=self._default_value(node, type_, site),
                description=node.description.value if node.description else None,
                ast_node=node,
            )

        return GraphQLDirective(
            declaration.name,
            locations=[DirectiveLocation[location] for location in declaration.locations],
            args=arguments,
            is_repeatable=declaration.repeatable,
            description=declaration.description,
            ast_node=declaration.node,
        )


def _usage_arguments(usage: DirectiveNode) -> dict[str, Any]:
    return {
        argument.name.value: value_from_ast_untyped(argument.value)
        for argument in usage.arguments or ()
    }
