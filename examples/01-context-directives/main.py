"""
Context Directives Example

This example demonstrates the directive pipeline:
1. Register directive constructors
2. Ingest declarations that use them
3. Execute requests: the schema chain fills the context,
   field chains read and transform values

Run: python -m examples.01-context-directives.main
"""

import asyncio

from graphcast import ExecutionHalt, Graphcast, RequestQuery, Settings, StopExecution

# =============================================================================
# Declarations
# =============================================================================

SDL = """
directive @auth(header: String = "authorization") on SCHEMA
directive @currentUser on FIELD_DEFINITION
directive @upper on FIELD_DEFINITION
directive @requireRole(role: String!) on FIELD_DEFINITION
directive @fallback(to: String!) on FIELD_DEFINITION

schema @auth {
    query: Query
}

type Query {
    me: String @currentUser @upper
    motto: String @fallback(to: "none") @upper
    secret: String @requireRole(role: "admin")
}
"""


# =============================================================================
# Directives
# =============================================================================


class Auth:
    """Reads a token from the root object and stores the user in the context."""

    def __init__(self, header: str):
        self.header = header

    def execute(self, context, source, value, arguments):
        token = source.get(self.header, "")
        user, _, role = token.partition(":")
        return value, context.with_values(user=user or None, role=role or "guest")


class CurrentUser:
    def execute(self, context, source, value, arguments):
        return context.get("user"), context


class Upper:
    def execute(self, context, source, value, arguments):
        return (value.upper() if isinstance(value, str) else value), context


class RequireRole:
    def __init__(self, role: str):
        self.role = role

    def execute(self, context, source, value, arguments):
        if context.get("role") != self.role:
            raise ExecutionHalt(f"role '{self.role}' required")
        return value, context


class Fallback:
    """Ends the chain with a fallback when there is no value."""

    def __init__(self, to: str):
        self.to = to

    async def execute(self, context, source, value, arguments):
        if value is None:
            raise StopExecution(self.to)
        return value, context


# =============================================================================
# Main
# =============================================================================


def build_engine() -> Graphcast:
    engine = Graphcast(settings=Settings())
    engine.register_directive("auth", lambda args, kind: Auth(args["header"]))
    engine.register_directive("currentUser", lambda args, kind: CurrentUser())
    engine.register_directive("upper", lambda args, kind: Upper())
    engine.register_directive("requireRole", lambda args, kind: RequireRole(args["role"]))
    engine.register_directive("fallback", lambda args, kind: Fallback(args["to"]))
    engine.ingest(SDL)
    engine.validate()
    return engine


async def main():
    engine = build_engine()
    print(f"Engine: {engine}")
    print()

    for token in ("ada:admin", "alan:guest"):
        result = await engine.execute(
            RequestQuery(
                request_string="{ me motto secret }",
                root_object={"authorization": token, "secret": "42"},
            )
        )
        print(f"Token: {token}")
        print(f"Data: {result.data}")
        for error in result.errors:
            print(f"Error at {error.get('path')}: {error['message']}")
        print()


if __name__ == "__main__":
    asyncio.run(main())
