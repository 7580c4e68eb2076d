"""
Request Context for graphcast.

The context carries request-scoped values through directive chains.
It is immutable: a directive that wants to add a value returns a new
context from with_value() instead of mutating the one it received.

The schema-level chain runs once per request and its resulting context
is handed to the execution engine, so values it sets are visible to
every field chain of that request. Values set by a field chain are
local to that chain.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any
from uuid import UUID, uuid4


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _freeze(values: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(values))


@dataclass(frozen=True, kw_only=True, slots=True)
class RequestContext(Mapping[str, Any]):
    """
    Immutable request-scoped state.

    Behaves as a read-only mapping over its values so directives can
    use ``ctx["key"]``, ``ctx.get("key")`` and ``"key" in ctx``.

    Example:
        ctx = RequestContext(values={"user": "alice"})
        ctx = ctx.with_value("role", "admin")
        assert ctx["role"] == "admin"
    """

    request_id: UUID = field(default_factory=uuid4)
    started_at: datetime = field(default_factory=_utc_now)
    values: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", _freeze(self.values))

    @classmethod
    def coerce(cls, context: RequestContext | Mapping[str, Any] | None) -> RequestContext:
        """Wrap a host-supplied context into a RequestContext."""
        if context is None:
            return cls()
        if isinstance(context, RequestContext):
            return context
        return cls(values=context)

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since the request started."""
        delta = datetime.now(UTC) - self.started_at
        return delta.total_seconds() * 1000

    def with_value(self, key: str, value: Any) -> RequestContext:
        """Return a copy of this context with ``key`` set to ``value``."""
        return replace(self, values={**self.values, key: value})

    def with_values(self, **values: Any) -> RequestContext:
        """Return a copy of this context with several keys set."""
        return replace(self, values={**self.values, **values})

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        return f"RequestContext(id={str(self.request_id)[:8]}..., keys={list(self.values)})"
