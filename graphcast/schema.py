"""
Schema Assembler.

Wires the materialized types, root operation types and directive
definitions into a graphql-core GraphQLSchema, lazily and at most once.

Build steps:
    1. Every declared directive has a constructor (or built-in handling)
    2. Schema-level directives are constructed (the request root chain)
    3. Types are materialized
    4. Root operation types are resolved
    5. GraphQLSchema is created and checked with graphql-core's validation
    6. The result is cached and all registries are frozen

Usage:
    assembler = SchemaAssembler(registry, store, scalars, settings)
    assembler.validate()           # fail fast at startup
    built = assembler.get_schema() # cached BuiltSchema
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from graphql import (
    GraphQLDirective,
    GraphQLObjectType,
    GraphQLSchema,
    specified_directives,
    validate_schema,
)

from .config import Settings
from .declarations import SchemaDeclaration
from .directives.chain import DirectiveChain
from .directives.construction import DirectiveFactory
from .directives.store import DirectiveStore
from .errors import DeclarationError, UnknownRootType
from .materializer import MaterializedTypes, TypeMaterializer
from .registry import DefinitionRegistry
from .scalars import ScalarRegistry

logger = logging.getLogger(__name__)

SCHEMA_SITE = "schema"

DEFAULT_QUERY_TYPE = "Query"
DEFAULT_MUTATION_TYPE = "Mutation"


@dataclass(frozen=True, slots=True)
class BuiltSchema:
    """The executable schema plus the chain run once per request."""

    graphql_schema: GraphQLSchema
    root_chain: DirectiveChain
    types: MaterializedTypes

    @property
    def query_type(self) -> GraphQLObjectType:
        return self.graphql_schema.query_type

    @property
    def mutation_type(self) -> GraphQLObjectType | None:
        return self.graphql_schema.mutation_type


class SchemaAssembler:
    """
    Lazy, memoized schema builder.

    The first successful build is cached and returned by every later
    call. A failed build caches nothing, so the same error is raised
    again on the next call.
    """

    def __init__(
        self,
        registry: DefinitionRegistry,
        store: DirectiveStore,
        scalars: ScalarRegistry,
        settings: Settings,
    ):
        self._registry = registry
        self._store = store
        self._scalars = scalars
        self._settings = settings

        self._built: BuiltSchema | None = None
        self._lock = threading.Lock()
        self.build_count = 0

    @property
    def is_built(self) -> bool:
        return self._built is not None

    def get_schema(self) -> BuiltSchema:
        """
        Return the cached schema, building it on first use.

        Raises:
            GraphcastError: Any assembly failure
        """
        built = self._built
        if built is not None:
            return built

        with self._lock:
            if self._built is None:
                self._built = self._assemble()
                self.build_count += 1
                self._registry.freeze()
                self._store.freeze()
                self._scalars.freeze()
            return self._built

    def validate(self) -> None:
        """Build (or reuse) the schema without executing anything."""
        self.get_schema()

    # -------------------------------------------------------------------------
    # Assembly
    # -------------------------------------------------------------------------

    def _assemble(self) -> BuiltSchema:
        registry = self._registry
        logger.info(f"[schema] Assembling schema from {registry!r}")

        self._store.validate_all_declared(registry.directives)

        factory = DirectiveFactory(self._store, registry.directives)
        declaration = registry.schema
        root_directives = (
            factory.construct_all(declaration.directives, declaration.node, SCHEMA_SITE)
            if declaration is not None
            else []
        )
        root_chain = DirectiveChain(
            root_directives,
            site=SCHEMA_SITE,
            log_errors=self._settings.log_resolution_errors,
        )

        materializer = TypeMaterializer(registry, factory, self._scalars, self._settings)
        types = materializer.materialize()

        query_name, mutation_name = self._root_type_names(declaration, types)
        query = self._root_type(types, "query", query_name)
        mutation = (
            self._root_type(types, "mutation", mutation_name) if mutation_name else None
        )

        declared_directives = [
            materializer.build_directive(directive) for directive in registry.directives.values()
        ]
        directives: list[GraphQLDirective] = [
            *declared_directives,
            *(
                directive
                for directive in specified_directives
                if directive.name not in registry.directives
            ),
        ]

        graphql_schema = GraphQLSchema(
            query=query,
            mutation=mutation,
            types=types.named_types(),
            directives=directives,
            description=declaration.description if declaration else None,
            ast_node=declaration.node if declaration else None,
        )
        schema_errors = validate_schema(graphql_schema)
        if schema_errors:
            raise DeclarationError(
                "invalid schema: " + "; ".join(error.message for error in schema_errors)
            )

        logger.info(
            f"[schema] Schema built | query={query.name} | "
            f"mutation={mutation.name if mutation else None} | "
            f"root_directives={root_chain.directive_names}"
        )
        return BuiltSchema(graphql_schema=graphql_schema, root_chain=root_chain, types=types)

    def _root_type_names(
        self,
        declaration: SchemaDeclaration | None,
        types: MaterializedTypes,
    ) -> tuple[str, str | None]:
        if declaration is None:
            if not self._settings.default_root_types:
                raise DeclarationError("no schema definition declared")
            mutation = DEFAULT_MUTATION_TYPE if DEFAULT_MUTATION_TYPE in types.objects else None
            return DEFAULT_QUERY_TYPE, mutation

        query: str | None = None
        mutation: str | None = None
        for operation, type_name in declaration.operation_types:
            if operation == "query":
                if query is not None:
                    raise DeclarationError("schema declares more than one query type")
                query = type_name
            elif operation == "mutation":
                if mutation is not None:
                    raise DeclarationError("schema declares more than one mutation type")
                mutation = type_name
            else:
                raise DeclarationError(f"unsupported operation type in schema: {operation}")

        if query is None:
            raise DeclarationError("schema must declare a query type")
        return query, mutation

    @staticmethod
    def _root_type(types: MaterializedTypes, operation: str, name: str) -> GraphQLObjectType:
        root = types.objects.get(name)
        if root is None:
            raise UnknownRootType(operation, name)
        return root
