"""
graphcast Engine.

Host-facing facade: registers directive constructors and scalars,
ingests declaration documents, builds the schema once and executes
requests against it.

Usage:
    engine = Graphcast()
    engine.register_directive("upper", new_upper)
    engine.ingest('''
        directive @upper on FIELD_DEFINITION
        type Query { hello: String @upper }
    ''')
    engine.validate()

    result = await engine.execute(RequestQuery(
        request_string="{ hello }",
        root_object={"hello": "world"},
    ))
    print(result.data)  # {"hello": "WORLD"}

Request flow:
    1. The schema chain runs once with the root object as source and value
    2. A Mapping result replaces the root object
    3. Its context becomes info.context for every field resolver
    4. graphql-core executes the request; each field runs its own chain
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from inspect import isawaitable
from typing import Any

from graphql import ExecutionResult, GraphQLError, graphql, graphql_sync
from graphql.language import Source

from .config import Settings, get_settings
from .context import RequestContext
from .declarations import parse_document
from .directives.base import DirectiveConstructor, DirectiveDefinition
from .directives.chain import ChainResult
from .directives.store import DirectiveStore
from .errors import GraphcastError
from .registry import DefinitionRegistry
from .scalars import ScalarConfig, ScalarRegistry
from .schema import BuiltSchema, SchemaAssembler

logger = logging.getLogger(__name__)


# =============================================================================
# Request / Result
# =============================================================================


@dataclass(frozen=True, kw_only=True, slots=True)
class RequestQuery:
    """One request to execute."""

    request_string: str
    variable_values: Mapping[str, Any] | None = None
    operation_name: str | None = None
    root_object: Mapping[str, Any] | None = None
    context: RequestContext | Mapping[str, Any] | None = None


@dataclass(slots=True)
class RequestResult:
    """
    Result of one request.

    ``errors`` holds graphql-core formatted errors (message, locations,
    path, extensions).
    """

    data: dict[str, Any] | None = None
    errors: list[dict[str, Any]] = field(default_factory=list)
    extensions: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def from_execution(cls, result: ExecutionResult) -> RequestResult:
        return cls(
            data=result.data,
            errors=[dict(error.formatted) for error in result.errors or ()],
            extensions=result.extensions,
        )

    @classmethod
    def from_exception(cls, exc: Exception) -> RequestResult:
        error = exc if isinstance(exc, GraphQLError) else GraphQLError(str(exc), original_error=exc)
        return cls(data=None, errors=[dict(error.formatted)])

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the GraphQL response shape."""
        response: dict[str, Any] = {"data": self.data}
        if self.errors:
            response["errors"] = self.errors
        if self.extensions:
            response["extensions"] = self.extensions
        return response


def _as_request(request: RequestQuery | str) -> RequestQuery:
    if isinstance(request, str):
        return RequestQuery(request_string=request)
    return request


# =============================================================================
# Engine
# =============================================================================


class Graphcast:
    """
    Declaration-driven GraphQL engine with directive pipelines.

    Registration (directives, scalars, documents) must finish before
    the first validate(), get_schema() or execute(); after the schema
    is built every registry is frozen.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.registry = DefinitionRegistry()
        self.directives = DirectiveStore()
        self.scalars = ScalarRegistry(include_datetime=self.settings.include_datetime_scalar)
        self._assembler = SchemaAssembler(
            self.registry,
            self.directives,
            self.scalars,
            self.settings,
        )

    @classmethod
    def from_sources(cls, *sources: str | Source, settings: Settings | None = None) -> Graphcast:
        """Create an engine and ingest the given sources."""
        engine = cls(settings=settings)
        engine.ingest(*sources)
        return engine

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register_directive(self, name: str, constructor: DirectiveConstructor) -> DirectiveDefinition:
        """
        Bind a directive constructor to a name.

        Raises:
            DirectiveAlreadyRegistered: If the name is already bound
        """
        return self.directives.register(name, constructor)

    def register_directives(self, *definitions: DirectiveDefinition) -> None:
        for definition in definitions:
            self.directives.register_constructor(definition)

    def register_scalar(self, config: ScalarConfig) -> None:
        """Register a scalar. A later registration under the same name wins."""
        self.scalars.register(config)

    def register_scalars(self, *configs: ScalarConfig) -> None:
        for config in configs:
            self.scalars.register(config)

    def ingest(self, *sources: str | Source) -> int:
        """
        Parse the sources as one document and register its declarations.

        Returns:
            Number of declarations registered

        Raises:
            DocumentSyntaxError: If the joined sources do not parse
            RegistrationError: On duplicates or after the schema is built
        """
        document = parse_document(*sources)
        count = self.registry.ingest(document)
        logger.info(f"[engine] Ingested {count} declaration(s) from {len(sources)} source(s)")
        return count

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    def validate(self) -> None:
        """Build the schema without executing a request."""
        self._assembler.validate()

    def get_schema(self) -> BuiltSchema:
        return self._assembler.get_schema()

    @property
    def build_count(self) -> int:
        """How many times schema assembly actually ran."""
        return self._assembler.build_count

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def execute(self, request: RequestQuery | str) -> RequestResult:
        """
        Execute a request. Directives may be sync or async.

        Assembly errors propagate; request errors are returned in the
        result.
        """
        built = self.get_schema()
        request = _as_request(request)
        context = RequestContext.coerce(request.context)
        root = request.root_object or {}

        try:
            outcome = built.root_chain.run(context, root, root, {})
            if isawaitable(outcome):
                outcome = await outcome
        except Exception as exc:
            return self._root_failure(exc)

        root, context = self._apply_root(outcome, root)
        result = await graphql(
            built.graphql_schema,
            request.request_string,
            root_value=root,
            context_value=context,
            variable_values=dict(request.variable_values) if request.variable_values else None,
            operation_name=request.operation_name,
        )
        return self._finish(result, context)

    def execute_sync(self, request: RequestQuery | str) -> RequestResult:
        """
        Execute a request synchronously.

        Raises:
            GraphcastError: If a schema-level directive is async
        """
        built = self.get_schema()
        request = _as_request(request)
        context = RequestContext.coerce(request.context)
        root = request.root_object or {}

        try:
            outcome = built.root_chain.run(context, root, root, {})
        except Exception as exc:
            return self._root_failure(exc)

        if isawaitable(outcome):
            _discard(outcome)
            raise GraphcastError("schema directives are async; use execute() instead")

        root, context = self._apply_root(outcome, root)
        result = graphql_sync(
            built.graphql_schema,
            request.request_string,
            root_value=root,
            context_value=context,
            variable_values=dict(request.variable_values) if request.variable_values else None,
            operation_name=request.operation_name,
        )
        return self._finish(result, context)

    @staticmethod
    def _apply_root(
        outcome: ChainResult,
        root: Mapping[str, Any],
    ) -> tuple[Mapping[str, Any], RequestContext]:
        if isinstance(outcome.value, Mapping):
            root = outcome.value
        return root, outcome.context

    @staticmethod
    def _root_failure(exc: Exception) -> RequestResult:
        logger.warning(f"[engine] Schema directives failed: {type(exc).__name__}: {exc}")
        return RequestResult.from_exception(exc)

    @staticmethod
    def _finish(result: ExecutionResult, context: RequestContext) -> RequestResult:
        response = RequestResult.from_execution(result)
        logger.debug(
            f"[engine] Request {str(context.request_id)[:8]} done | "
            f"errors={len(response.errors)} | duration={context.elapsed_ms:.1f}ms"
        )
        return response

    def __repr__(self) -> str:
        return (
            f"Graphcast(declarations={len(self.registry)}, "
            f"directives={self.directives.registered_names}, built={self._assembler.is_built})"
        )


def _discard(pending: Awaitable[Any]) -> None:
    close = getattr(pending, "close", None)
    if close is not None:
        close()
