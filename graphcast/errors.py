"""
Error taxonomy for graphcast.

Assembly-time errors (everything except ExecutionHalt) are raised
synchronously from ingestion, validate() and get_schema() and abort
the build before any request can be served.

Request-time errors are raised from directive chains and surface as
field-level entries in the result's error list.

Hierarchy:
    GraphcastError
    ├── RegistrationError
    │   ├── DuplicateDeclaration
    │   ├── SchemaAlreadyDefined
    │   ├── DirectiveAlreadyRegistered
    │   └── RegistryFrozen
    ├── DeclarationError
    │   ├── DocumentSyntaxError
    │   ├── UnsupportedDeclaration
    │   ├── UnsupportedDirectiveUsage
    │   ├── TypeNameCollision
    │   └── UndefinedScalar
    ├── ConstructionError
    ├── DefineError
    ├── UnknownNamedType
    ├── UnknownRootType
    ├── UnregisteredDirective
    ├── UndeclaredDirectiveConstructor
    └── ExecutionHalt
"""

from __future__ import annotations


class GraphcastError(Exception):
    """Base class for all graphcast errors."""

    pass


# =============================================================================
# Registration
# =============================================================================


class RegistrationError(GraphcastError):
    """A name could not be registered. The caller may retry with another name."""

    pass


class DuplicateDeclaration(RegistrationError):
    """Raised when a declaration of the same kind and name already exists."""

    def __init__(self, name: str, kind: str):
        self.name = name
        self.kind = kind
        super().__init__(f"{kind} '{name}' already declared")


class SchemaAlreadyDefined(RegistrationError):
    """Raised when a second schema definition is registered."""

    def __init__(self) -> None:
        super().__init__("schema already defined")


class DirectiveAlreadyRegistered(RegistrationError):
    """Raised when a directive constructor name is bound twice."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"directive @{name} already registered")


class RegistryFrozen(RegistrationError):
    """Raised on registration after the schema has been built."""

    def __init__(self, registry: str, name: str):
        self.registry = registry
        self.name = name
        super().__init__(
            f"cannot register '{name}' in {registry}: schema already built"
        )


# =============================================================================
# Declarations
# =============================================================================


class DeclarationError(GraphcastError):
    """Malformed or contradictory declarations. Fatal for assembly."""

    pass


class DocumentSyntaxError(DeclarationError):
    """Raised when a declaration document cannot be parsed."""

    def __init__(self, message: str):
        super().__init__(f"error while parsing declarations: {message}")


class UnsupportedDeclaration(DeclarationError):
    """Raised for document definitions this engine does not assemble."""

    def __init__(self, kind: str, name: str | None = None):
        self.kind = kind
        self.name = name
        target = f" '{name}'" if name else ""
        super().__init__(f"unsupported definition kind: {kind}{target}")


class UnsupportedDirectiveUsage(DeclarationError):
    """Raised when directives are attached where no pipeline exists for them."""

    def __init__(self, directive: str, site: str):
        self.directive = directive
        self.site = site
        super().__init__(
            f"directive @{directive} on {site} is not supported: "
            "directives are not implemented for this location"
        )


class TypeNameCollision(DeclarationError):
    """Raised when one name is declared as more than one kind of type."""

    def __init__(self, name: str, kinds: tuple[str, ...]):
        self.name = name
        self.kinds = kinds
        super().__init__(f"type name '{name}' declared as {' and '.join(kinds)}")


class UndefinedScalar(DeclarationError):
    """Raised when a declared scalar has no registered implementation."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"scalar '{name}' was declared but not registered")


# =============================================================================
# Directive construction
# =============================================================================


class ConstructionError(GraphcastError):
    """A directive constructor rejected its merged arguments."""

    def __init__(self, directive: str, site: str, cause: BaseException):
        self.directive = directive
        self.site = site
        self.cause = cause
        super().__init__(f"can't construct @{directive} for {site}: {cause}")


class DefineError(GraphcastError):
    """A directive's define hook rejected its target."""

    def __init__(self, directive: str, site: str, message: str):
        self.directive = directive
        self.site = site
        super().__init__(f"@{directive} on {site}: {message}")


# =============================================================================
# Unknown references
# =============================================================================


class UnknownNamedType(GraphcastError):
    """Raised when a type reference matches no declaration."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown named type: {name}")


class UnknownRootType(GraphcastError):
    """Raised when a root operation type is not a declared object."""

    def __init__(self, operation: str, name: str):
        self.operation = operation
        self.name = name
        super().__init__(f"object '{name}' declared as schema.{operation} not found")


class UnregisteredDirective(GraphcastError):
    """Raised when a directive usage has no constructor and no built-in handling."""

    def __init__(self, name: str, site: str):
        self.name = name
        self.site = site
        super().__init__(f"undefined declaration for directive @{name} used on {site}")


class UndeclaredDirectiveConstructor(GraphcastError):
    """Raised when a declared directive was never given a constructor."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"directive '{name}' was declared in schema, but not registered"
        )


# =============================================================================
# Request time
# =============================================================================


class ExecutionHalt(GraphcastError):
    """
    Raised by a directive to fail the current chain.

    The reason becomes the message of the field's (or request's)
    error entry. Sibling fields are not affected.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
