"""
graphcast - Declaration-driven GraphQL schemas with directive pipelines.

graphcast builds an executable GraphQL schema from SDL declarations and
attaches an ordered, pluggable directive chain to every field, enum
value and to the schema root:

- **Two-Phase Materialization**: Forward and cyclic type references just work
- **Directive Constructors**: One registered factory per directive name
- **Execution Chains**: Ordered, short-circuiting, sync or async
- **Build-Time Hooks**: Directives can edit field and enum value configuration
- **Immutable Context**: Request-scoped values threaded through every chain

Quick Start:
    >>> from graphcast import Graphcast, RequestQuery
    >>>
    >>> engine = Graphcast.from_sources("type Query { hello: String }")
    >>> result = engine.execute_sync(RequestQuery(
    ...     request_string="{ hello }",
    ...     root_object={"hello": "world"},
    ... ))
    >>> result.data
    {'hello': 'world'}
"""

__version__ = "0.1.0"
__author__ = "graphcast contributors"
__license__ = "MIT"

from graphcast.config import Settings, get_settings
from graphcast.context import RequestContext
from graphcast.directives import (
    Definable,
    Directive,
    DirectiveDefinition,
    EnumValueConfig,
    FieldConfig,
    StopExecution,
    TargetKind,
    builtin_definitions,
)
from graphcast.engine import Graphcast, RequestQuery, RequestResult
from graphcast.errors import (
    ConstructionError,
    DeclarationError,
    DefineError,
    ExecutionHalt,
    GraphcastError,
    RegistrationError,
    UndeclaredDirectiveConstructor,
    UnknownNamedType,
    UnknownRootType,
    UnregisteredDirective,
)
from graphcast.scalars import ScalarConfig
from graphcast.schema import BuiltSchema

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Engine
    "Graphcast",
    "RequestQuery",
    "RequestResult",
    "BuiltSchema",
    "RequestContext",
    "Settings",
    "get_settings",
    # Directives
    "Directive",
    "Definable",
    "DirectiveDefinition",
    "FieldConfig",
    "EnumValueConfig",
    "TargetKind",
    "StopExecution",
    "builtin_definitions",
    # Scalars
    "ScalarConfig",
    # Errors
    "GraphcastError",
    "RegistrationError",
    "DeclarationError",
    "ConstructionError",
    "DefineError",
    "ExecutionHalt",
    "UnknownNamedType",
    "UnknownRootType",
    "UnregisteredDirective",
    "UndeclaredDirectiveConstructor",
]
