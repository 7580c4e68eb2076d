"""
Directive Execution Pipeline.

A chain is the ordered list of directive instances attached to one
site. The same chain contract is used at both call sites:

- Schema level, once per request, before any field resolution. The root
  object is both the source and the initial value.
- Field level, once per field per resolution. The initial value is the
  default lookup of the field's name in its source.

Execution Model:
- Directives run in construction order (document order)
- Each receives (context, source, value, arguments) and returns
  (value, context); the next directive sees both
- StopExecution ends the chain; the last value is final and no error
  is surfaced
- Any other exception ends the chain and propagates to the caller
- A directive returning an awaitable switches the rest of the chain to
  async; run() then returns an awaitable ChainResult
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Iterator, Sequence
from dataclasses import dataclass
from inspect import isawaitable
from typing import Any

from graphcast.context import RequestContext
from graphcast.errors import ExecutionHalt

from .base import Arguments, BoundDirective, StopExecution

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChainResult:
    """Final value and context of one chain run."""

    value: Any
    context: RequestContext
    stopped_by: str | None = None

    @property
    def stopped(self) -> bool:
        """True if a directive ended the chain early without an error."""
        return self.stopped_by is not None


class DirectiveChain:
    """
    Ordered, short-circuiting sequence of directive instances.

    Example:
        chain = DirectiveChain(factory.construct_all(usages, node, site), site=site)

        result = chain.run(ctx, source, initial_value, field_args)
        if isawaitable(result):
            result = await result
        print(result.value)
    """

    def __init__(
        self,
        directives: Sequence[BoundDirective] = (),
        *,
        site: str = "",
        log_errors: bool = True,
    ):
        self._directives = tuple(directives)
        self.site = site
        self._log_errors = log_errors

    @property
    def directive_names(self) -> list[str]:
        """Names of all directives in execution order."""
        return [bound.name for bound in self._directives]

    @property
    def directives(self) -> tuple[BoundDirective, ...]:
        return self._directives

    def run(
        self,
        context: RequestContext,
        source: Any,
        value: Any,
        arguments: Arguments,
    ) -> ChainResult | Awaitable[ChainResult]:
        """
        Execute the chain.

        Args:
            context: Request-scoped context
            source: Parent object of the field (root object at schema level)
            value: Initial value
            arguments: Field argument values (empty at schema level)

        Returns:
            ChainResult, or an awaitable of it if any directive was async

        Raises:
            Exception: Whatever the failing directive raised
        """
        return self._run_from(0, context, source, value, arguments)

    def _run_from(
        self,
        start: int,
        context: RequestContext,
        source: Any,
        value: Any,
        arguments: Arguments,
    ) -> ChainResult | Awaitable[ChainResult]:
        for position in range(start, len(self._directives)):
            bound = self._directives[position]
            try:
                outcome = bound.directive.execute(context, source, value, arguments)
            except StopExecution as signal:
                return self._stopped(bound, signal, value, context)
            except Exception as exc:
                self._report(bound, exc)
                raise

            if isawaitable(outcome):
                return self._resume(outcome, position, context, source, value, arguments)

            value, context = self._unpack(bound, outcome)

        return ChainResult(value=value, context=context)

    async def _resume(
        self,
        pending: Awaitable[Any],
        position: int,
        context: RequestContext,
        source: Any,
        value: Any,
        arguments: Arguments,
    ) -> ChainResult:
        bound = self._directives[position]
        try:
            outcome = await pending
        except StopExecution as signal:
            return self._stopped(bound, signal, value, context)
        except Exception as exc:
            self._report(bound, exc)
            raise

        value, context = self._unpack(bound, outcome)

        result = self._run_from(position + 1, context, source, value, arguments)
        if isawaitable(result):
            return await result
        return result

    @staticmethod
    def _unpack(bound: BoundDirective, outcome: Any) -> tuple[Any, RequestContext]:
        try:
            value, context = outcome
        except (TypeError, ValueError):
            raise TypeError(
                f"@{bound.name} on {bound.site} must return a (value, context) pair, "
                f"got {type(outcome).__name__}"
            ) from None
        return value, context

    @staticmethod
    def _stopped(
        bound: BoundDirective,
        signal: StopExecution,
        value: Any,
        context: RequestContext,
    ) -> ChainResult:
        logger.debug(f"[directive_chain] @{bound.name} stopped chain on {bound.site}")
        final = signal.value if signal.has_value else value
        return ChainResult(value=final, context=context, stopped_by=bound.name)

    def _report(self, bound: BoundDirective, exc: Exception) -> None:
        if not self._log_errors:
            return
        if isinstance(exc, ExecutionHalt):
            logger.info(f"[directive_chain] @{bound.name} halted {bound.site}: {exc.reason}")
        else:
            logger.warning(
                f"[directive_chain] @{bound.name} failed on {bound.site}: "
                f"{type(exc).__name__}: {exc}"
            )

    def __len__(self) -> int:
        return len(self._directives)

    def __iter__(self) -> Iterator[BoundDirective]:
        return iter(self._directives)

    def __repr__(self) -> str:
        return f"DirectiveChain(site={self.site!r}, directives={self.directive_names})"
