"""
Pytest configuration and fixtures for graphcast tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from graphcast import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from graphcast import Graphcast, Settings  # noqa: E402
from graphcast.directives import DirectiveDefinition  # noqa: E402
from graphcast.errors import ExecutionHalt  # noqa: E402
from graphcast.scalars import ScalarConfig  # noqa: E402


# =============================================================================
# Sample directives
# =============================================================================


class SetContext:
    """Schema-level: copies root[source] into the context under key."""

    def __init__(self, key, source):
        self.key = key
        self.source = source

    def execute(self, context, source, value, arguments):
        return value, context.with_value(self.key, source.get(self.source))


class GetContext:
    """Field-level: resolves to a context value."""

    def __init__(self, key):
        self.key = key

    def execute(self, context, source, value, arguments):
        return context.get(self.key), context


class ResolveString:
    """Resolves to a fixed string."""

    def __init__(self, value):
        self.value = value

    def execute(self, context, source, value, arguments):
        return self.value, context


class ResolveArg:
    """Resolves to a field argument."""

    def __init__(self, name):
        self.name = name

    def execute(self, context, source, value, arguments):
        return arguments.get(self.name), context


class Expect:
    """Fails the chain unless the current value equals the expected one."""

    def __init__(self, equals):
        self.equals = equals

    def execute(self, context, source, value, arguments):
        if value != self.equals:
            raise ExecutionHalt(f"expected {self.equals!r}, got {value!r}")
        return value, context


def new_set_context(arguments, node_kind):
    if node_kind != "schema_definition":
        raise ValueError("setContext only applies to the schema")
    key = arguments["key"]
    return SetContext(key, arguments.get("from") or key)


def new_get_context(arguments, node_kind):
    return GetContext(arguments["key"])


def new_resolve_string(arguments, node_kind):
    return ResolveString(arguments["value"])


def new_resolve_arg(arguments, node_kind):
    return ResolveArg(arguments["name"])


def new_expect(arguments, node_kind):
    return Expect(arguments["equals"])


SAMPLE_DIRECTIVES_SDL = """
directive @setContext(key: String!, from: String) on SCHEMA
directive @getContext(key: String!) on FIELD_DEFINITION
directive @resolveString(value: String = "default") on FIELD_DEFINITION
directive @resolveArg(name: String!) on FIELD_DEFINITION
directive @expect(equals: String!) on FIELD_DEFINITION
"""


def _double(value):
    return str(value) * 2


DOUBLE_STRING = ScalarConfig(
    name="DoubleString",
    serialize=_double,
    parse_value=_double,
    description="Doubles strings in both directions",
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings():
    """Default settings, independent of the environment."""
    return Settings()


@pytest.fixture
def sample_definitions():
    """Definitions for the sample directives."""
    return [
        DirectiveDefinition("setContext", new_set_context),
        DirectiveDefinition("getContext", new_get_context),
        DirectiveDefinition("resolveString", new_resolve_string),
        DirectiveDefinition("resolveArg", new_resolve_arg),
        DirectiveDefinition("expect", new_expect),
    ]


@pytest.fixture
def sample_directives_sdl():
    """Declarations of the sample directives."""
    return SAMPLE_DIRECTIVES_SDL


@pytest.fixture
def double_string():
    """The DoubleString scalar config."""
    return DOUBLE_STRING


@pytest.fixture
def engine(settings, sample_definitions):
    """Engine with the sample directives registered and nothing ingested."""
    engine = Graphcast(settings=settings)
    engine.register_directives(*sample_definitions)
    return engine


@pytest.fixture
def hello_sdl():
    """Smallest useful document."""
    return "type Query { hello: String }"


@pytest.fixture
def context_sdl():
    """Schema that injects root.user into the context and reads it back."""
    return """
    schema @setContext(key: "user") {
        query: Query
    }

    type Query {
        me: String @getContext(key: "user")
        greeting: String @resolveString(value: "hi")
    }
    """
