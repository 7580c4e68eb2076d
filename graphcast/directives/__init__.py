"""
graphcast Directives

Directive capabilities, the constructor store, usage-site construction
and the execution chain.

Core Components:
- Directive / Definable: capability protocols (execute, define)
- DirectiveDefinition: a name bound to a constructor
- DirectiveStore: one constructor per name, plus the built-in allow-list
- DirectiveFactory: merges declared defaults with usage arguments
- DirectiveChain: ordered, short-circuiting execution
- StopExecution: end a chain without an error
"""

from .base import (
    Arguments,
    BoundDirective,
    Definable,
    Directive,
    DirectiveConstructor,
    DirectiveDefinition,
    EnumValueConfig,
    ExecuteResult,
    FieldConfig,
    StopExecution,
    TargetKind,
)
from .builtin import Deprecated, Value, builtin_definitions, new_deprecated, new_value
from .chain import ChainResult, DirectiveChain
from .construction import DirectiveFactory, merge_arguments
from .store import BUILTIN_DIRECTIVES, ENUM_PRIVACY, ENUM_VAL, DirectiveStore, is_builtin

__all__ = [
    # Capabilities
    "Arguments",
    "Directive",
    "Definable",
    "DirectiveConstructor",
    "ExecuteResult",
    "TargetKind",
    "FieldConfig",
    "EnumValueConfig",
    "StopExecution",
    # Registration
    "DirectiveDefinition",
    "BoundDirective",
    "DirectiveStore",
    "BUILTIN_DIRECTIVES",
    "ENUM_PRIVACY",
    "ENUM_VAL",
    "is_builtin",
    # Construction & execution
    "DirectiveFactory",
    "merge_arguments",
    "DirectiveChain",
    "ChainResult",
    # Ready-made
    "Deprecated",
    "Value",
    "new_deprecated",
    "new_value",
    "builtin_definitions",
]
