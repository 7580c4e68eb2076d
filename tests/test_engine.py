"""
Tests for request execution through the Graphcast engine.
"""
import asyncio
from datetime import datetime, timezone

import pytest

from graphcast import Graphcast, RequestContext, RequestQuery, RequestResult, StopExecution
from graphcast.errors import DirectiveAlreadyRegistered, DocumentSyntaxError, GraphcastError
from graphcast.scalars import ScalarConfig


class TestHelloWorld:
    """Tests for default value lookup."""

    def test_default_lookup_from_root(self, engine, hello_sdl):
        """Fields without directives read their name from the root object."""
        engine.ingest(hello_sdl)

        result = engine.execute_sync(
            RequestQuery(request_string="query { hello }", root_object={"hello": "world"})
        )

        assert result.ok
        assert result.data == {"hello": "world"}

    def test_missing_key_resolves_to_null(self, engine, hello_sdl):
        """Absent keys resolve to null."""
        engine.ingest(hello_sdl)

        result = engine.execute_sync("{ hello }")

        assert result.data == {"hello": None}
        assert result.errors == []

    def test_nested_mappings(self, settings):
        """Nested mappings are walked by name."""
        engine = Graphcast.from_sources(
            "type Query { user: User }",
            "type User { name: String, friends: [User] }",
            settings=settings,
        )

        result = engine.execute_sync(
            RequestQuery(
                request_string="{ user { name friends { name } } }",
                root_object={"user": {"name": "ada", "friends": [{"name": "alan"}]}},
            )
        )

        assert result.data == {"user": {"name": "ada", "friends": [{"name": "alan"}]}}

    @pytest.mark.asyncio
    async def test_async_execute(self, engine, hello_sdl):
        """execute() gives the same result as execute_sync()."""
        engine.ingest(hello_sdl)

        result = await engine.execute(
            RequestQuery(request_string="{ hello }", root_object={"hello": "world"})
        )

        assert result.to_dict() == {"data": {"hello": "world"}}


class TestContextInjection:
    """Tests for schema-level directives and the request context."""

    def test_schema_directive_injects_context(self, engine, sample_directives_sdl, context_sdl):
        """A value set by the schema chain is visible to field chains."""
        engine.ingest(sample_directives_sdl, context_sdl)

        result = engine.execute_sync(
            RequestQuery(request_string="{ me greeting }", root_object={"user": "alice"})
        )

        assert result.data == {"me": "alice", "greeting": "hi"}

    def test_host_context_reaches_fields(self, engine, sample_directives_sdl):
        """A context supplied with the request is visible to directives."""
        engine.ingest(
            sample_directives_sdl,
            'type Query { tenant: String @getContext(key: "tenant") }',
        )

        result = engine.execute_sync(
            RequestQuery(request_string="{ tenant }", context={"tenant": "acme"})
        )

        assert result.data == {"tenant": "acme"}

    def test_request_context_instance_is_used(self, engine, sample_directives_sdl):
        """A RequestContext passed by the host is used as is."""
        seen = []

        class Capture:
            def execute(self, context, source, value, arguments):
                seen.append(context)
                return value, context

        engine.register_directive("capture", lambda arguments, node_kind: Capture())
        engine.ingest("type Query { a: Int @capture }")
        context = RequestContext(values={"k": "v"})

        engine.execute_sync(RequestQuery(request_string="{ a }", context=context))

        assert seen == [context]

    def test_schema_directive_can_replace_root(self, engine):
        """A Mapping returned by the schema chain becomes the root object."""

        class Wrap:
            def execute(self, context, source, value, arguments):
                return {"hello": f"<{value['hello']}>"}, context

        engine.register_directive("wrap", lambda arguments, node_kind: Wrap())
        engine.ingest("schema @wrap { query: Query }\ntype Query { hello: String }")

        result = engine.execute_sync(
            RequestQuery(request_string="{ hello }", root_object={"hello": "world"})
        )

        assert result.data == {"hello": "<world>"}

    def test_schema_directive_failure_fails_request(self, engine):
        """A failing schema chain yields no data and one error."""

        class Deny:
            def execute(self, context, source, value, arguments):
                raise PermissionError("denied")

        engine.register_directive("deny", lambda arguments, node_kind: Deny())
        engine.ingest("schema @deny { query: Query }\ntype Query { hello: String }")

        result = engine.execute_sync("{ hello }")

        assert result.data is None
        assert result.errors == [{"message": "denied"}]


class TestFieldDirectives:
    """Tests for field-level chains during execution."""

    def test_resolve_arg(self, engine, sample_directives_sdl):
        """Directives receive field arguments."""
        engine.ingest(
            sample_directives_sdl,
            'type Query { echo(text: String!): String @resolveArg(name: "text") }',
        )

        result = engine.execute_sync(
            RequestQuery(
                request_string="query Echo($t: String!) { echo(text: $t) }",
                variable_values={"t": "ping"},
                operation_name="Echo",
            )
        )

        assert result.data == {"echo": "ping"}

    def test_declared_default_argument(self, engine, sample_directives_sdl):
        """Usages without arguments get the declared default."""
        engine.ingest(sample_directives_sdl, "type Query { a: String @resolveString }")

        result = engine.execute_sync("{ a }")

        assert result.data == {"a": "default"}

    def test_stop_short_circuits_without_error(self, engine, sample_directives_sdl):
        """StopExecution skips the rest of the chain and reports nothing."""

        class StopHere:
            def execute(self, context, source, value, arguments):
                raise StopExecution()

        engine.register_directive("stopHere", lambda arguments, node_kind: StopHere())
        engine.ingest(
            sample_directives_sdl,
            'type Query { a: String @resolveString(value: "kept") @stopHere @expect(equals: "never") }',
        )

        result = engine.execute_sync("{ a }")

        assert result.errors == []
        assert result.data == {"a": "kept"}

    def test_failure_is_isolated_to_its_field(self, engine, sample_directives_sdl):
        """One failing field does not prevent its siblings from resolving."""
        engine.ingest(
            sample_directives_sdl,
            """
            type Query {
                bad: String @resolveString(value: "x") @expect(equals: "y")
                good: String @resolveString(value: "fine")
            }
            """,
        )

        result = engine.execute_sync("{ bad good }")

        assert result.data == {"bad": None, "good": "fine"}
        assert len(result.errors) == 1
        assert result.errors[0]["message"] == "expected 'y', got 'x'"
        assert result.errors[0]["path"] == ["bad"]

    @pytest.mark.asyncio
    async def test_async_directive(self, engine, sample_directives_sdl):
        """Async directives work under execute()."""

        class Slow:
            async def execute(self, context, source, value, arguments):
                await asyncio.sleep(0)
                return f"{value}!", context

        engine.register_directive("slow", lambda arguments, node_kind: Slow())
        engine.ingest(
            sample_directives_sdl,
            'type Query { a: String @resolveString(value: "hey") @slow @expect(equals: "hey!") }',
        )

        result = await engine.execute("{ a }")

        assert result.ok
        assert result.data == {"a": "hey!"}

    @pytest.mark.asyncio
    async def test_async_schema_directive(self, engine, sample_directives_sdl):
        """Async schema directives are awaited before execution."""

        class SlowContext:
            async def execute(self, context, source, value, arguments):
                await asyncio.sleep(0)
                return value, context.with_value("user", "bob")

        engine.register_directive("slowContext", lambda arguments, node_kind: SlowContext())
        engine.ingest(
            sample_directives_sdl,
            'schema @slowContext { query: Query }\ntype Query { me: String @getContext(key: "user") }',
        )

        result = await engine.execute("{ me }")

        assert result.data == {"me": "bob"}

    def test_async_schema_directive_in_sync_mode_fails(self, engine):
        """execute_sync() cannot run async schema directives."""

        class Slow:
            async def execute(self, context, source, value, arguments):
                return value, context

        engine.register_directive("slow", lambda arguments, node_kind: Slow())
        engine.ingest("schema @slow { query: Query }\ntype Query { a: Int }")

        with pytest.raises(GraphcastError, match="execute()"):
            engine.execute_sync("{ a }")


class TestEnums:
    """Tests for enum serialization with aliased values."""

    def test_enum_val_serializes_alias(self, settings):
        """Runtime alias values serialize back to enum names."""
        engine = Graphcast.from_sources(
            """
            enum Color @enumPrivacy(frontend: true) { RED @enumVal(str: "#f00") BLUE }
            type Query { color: Color, colors: [Color] }
            """,
            settings=settings,
        )

        result = engine.execute_sync(
            RequestQuery(
                request_string="{ color colors }",
                root_object={"color": "#f00", "colors": ["BLUE", "#f00"]},
            )
        )

        assert result.data == {"color": "RED", "colors": ["BLUE", "RED"]}


class TestScalars:
    """Tests for scalar registration during execution."""

    def test_custom_scalar_parse_and_serialize(
        self, engine, sample_directives_sdl, double_string
    ):
        """Literals are parsed and results serialized by the scalar."""
        engine.register_scalar(double_string)
        engine.ingest(
            sample_directives_sdl,
            """
            scalar DoubleString
            type Query { echo(text: DoubleString): DoubleString @resolveArg(name: "text") }
            """,
        )

        result = engine.execute_sync('{ echo(text: "ab") }')

        assert result.data == {"echo": "abababab"}

    def test_scalar_overwrite_is_accepted(self, engine, double_string, hello_sdl):
        """Registering a scalar name twice keeps the last registration."""
        engine.register_scalar(double_string)
        engine.register_scalar(ScalarConfig(name="DoubleString", serialize=str.upper))
        engine.ingest("scalar DoubleString\ntype Query { d: DoubleString }")

        result = engine.execute_sync(
            RequestQuery(request_string="{ d }", root_object={"d": "ab"})
        )

        assert result.data == {"d": "AB"}

    def test_directive_reregistration_fails(self, engine):
        """Registering a directive name twice fails."""
        with pytest.raises(DirectiveAlreadyRegistered):
            engine.register_directive("getContext", lambda arguments, node_kind: None)

    def test_datetime_scalar(self, settings):
        """The DateTime scalar serializes to ISO-8601."""
        engine = Graphcast.from_sources("type Query { at: DateTime }", settings=settings)
        moment = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)

        result = engine.execute_sync(
            RequestQuery(request_string="{ at }", root_object={"at": moment})
        )

        assert result.data == {"at": "2024-05-01T12:30:00+00:00"}


class TestEngineApi:
    """Tests for the facade itself."""

    def test_ingest_returns_count(self, engine, sample_directives_sdl):
        """ingest() reports how many declarations were registered."""
        assert engine.ingest(sample_directives_sdl) == 5

    def test_syntax_error(self, engine):
        """Unparseable sources raise DocumentSyntaxError."""
        with pytest.raises(DocumentSyntaxError):
            engine.ingest("type {")

    def test_query_errors_are_reported(self, engine, hello_sdl):
        """Invalid requests return graphql-core validation errors."""
        engine.ingest(hello_sdl)

        result = engine.execute_sync("{ nope }")

        assert result.data is None
        assert "nope" in result.errors[0]["message"]

    def test_result_to_dict(self):
        """to_dict() follows the GraphQL response shape."""
        result = RequestResult(data={"a": 1}, errors=[{"message": "x"}], extensions={"t": 1})

        assert result.to_dict() == {
            "data": {"a": 1},
            "errors": [{"message": "x"}],
            "extensions": {"t": 1},
        }
