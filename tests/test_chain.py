"""
Tests for the directive execution chain.
"""
import asyncio
from inspect import isawaitable

import pytest

from graphcast.context import RequestContext
from graphcast.directives import BoundDirective, DirectiveChain, StopExecution
from graphcast.errors import ExecutionHalt


class Append:
    """Appends a suffix to the current value."""

    def __init__(self, suffix, calls=None):
        self.suffix = suffix
        self.calls = calls if calls is not None else []

    def execute(self, context, source, value, arguments):
        self.calls.append(self.suffix)
        return f"{value or ''}{self.suffix}", context


class AsyncAppend(Append):
    async def execute(self, context, source, value, arguments):
        await asyncio.sleep(0)
        self.calls.append(self.suffix)
        return f"{value or ''}{self.suffix}", context


class Stop:
    def __init__(self, final=None, use_final=False):
        self.final = final
        self.use_final = use_final

    def execute(self, context, source, value, arguments):
        if self.use_final:
            raise StopExecution(self.final)
        raise StopExecution()


class Fail:
    def execute(self, context, source, value, arguments):
        raise ExecutionHalt("not allowed")


class Remember:
    """Stores a value in the context."""

    def execute(self, context, source, value, arguments):
        return value, context.with_value("seen", value)


class BadReturn:
    def execute(self, context, source, value, arguments):
        return value


def chain_of(*directives):
    bound = [
        BoundDirective(name=type(d).__name__.lower(), site="field 'Query.f'", directive=d)
        for d in directives
    ]
    return DirectiveChain(bound, site="field 'Query.f'")


class TestDirectiveChain:
    """Tests for synchronous chains."""

    def test_empty_chain_returns_initial(self):
        """An empty chain returns the initial value and context."""
        context = RequestContext()
        result = DirectiveChain().run(context, {}, "initial", {})

        assert result.value == "initial"
        assert result.context is context
        assert not result.stopped

    def test_runs_in_order(self):
        """Directives run in construction order, each seeing the previous value."""
        calls = []
        chain = chain_of(Append("a", calls), Append("b", calls), Append("c", calls))

        result = chain.run(RequestContext(), {}, "", {})

        assert result.value == "abc"
        assert calls == ["a", "b", "c"]

    def test_context_is_threaded(self):
        """A context extended by one directive reaches the next."""
        seen = []

        class Probe:
            def execute(self, context, source, value, arguments):
                seen.append(context.get("seen"))
                return value, context

        chain = chain_of(Append("x"), Remember(), Probe())
        result = chain.run(RequestContext(), {}, "", {})

        assert seen == ["x"]
        assert result.context["seen"] == "x"

    def test_stop_keeps_last_value(self):
        """StopExecution ends the chain with the last produced value."""
        calls = []
        chain = chain_of(Append("a", calls), Stop(), Append("b", calls))

        result = chain.run(RequestContext(), {}, "", {})

        assert result.value == "a"
        assert calls == ["a"]
        assert result.stopped
        assert result.stopped_by == "stop"

    def test_stop_with_value(self):
        """StopExecution may carry its own final value, including None."""
        chain = chain_of(Append("a"), Stop(final=None, use_final=True))

        result = chain.run(RequestContext(), {}, "", {})

        assert result.value is None

    def test_failure_propagates_and_halts(self):
        """A failing directive stops the chain and raises."""
        calls = []
        chain = chain_of(Append("a", calls), Fail(), Append("b", calls))

        with pytest.raises(ExecutionHalt, match="not allowed"):
            chain.run(RequestContext(), {}, "", {})

        assert calls == ["a"]

    def test_non_pair_result_is_type_error(self):
        """Directives must return a (value, context) pair."""
        chain = chain_of(BadReturn())

        with pytest.raises(TypeError, match="must return a"):
            chain.run(RequestContext(), {}, 42, {})

    def test_arguments_are_passed(self):
        """Field arguments reach every directive."""

        class EchoArg:
            def execute(self, context, source, value, arguments):
                return arguments["name"], context

        result = chain_of(EchoArg()).run(RequestContext(), {}, None, {"name": "x"})

        assert result.value == "x"

    def test_introspection_helpers(self):
        """Names, length and iteration follow construction order."""
        chain = chain_of(Append("a"), Stop())

        assert chain.directive_names == ["append", "stop"]
        assert len(chain) == 2
        assert [b.name for b in chain] == ["append", "stop"]
        assert "append" in repr(chain)


class TestAsyncChain:
    """Tests for chains containing async directives."""

    @pytest.mark.asyncio
    async def test_async_directive_makes_run_awaitable(self):
        """An async directive switches the rest of the chain to async."""
        calls = []
        chain = chain_of(Append("a", calls), AsyncAppend("b", calls), Append("c", calls))

        pending = chain.run(RequestContext(), {}, "", {})
        assert isawaitable(pending)

        result = await pending
        assert result.value == "abc"
        assert calls == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_async_stop(self):
        """StopExecution raised from an async directive stops the chain."""

        class AsyncStop:
            async def execute(self, context, source, value, arguments):
                raise StopExecution()

        calls = []
        chain = chain_of(Append("a", calls), AsyncStop(), Append("b", calls))

        result = await chain.run(RequestContext(), {}, "", {})

        assert result.value == "a"
        assert calls == ["a"]

    @pytest.mark.asyncio
    async def test_async_failure_propagates(self):
        """Async failures propagate from the awaited result."""

        class AsyncFail:
            async def execute(self, context, source, value, arguments):
                raise ExecutionHalt("async nope")

        chain = chain_of(AsyncFail(), Append("b"))

        with pytest.raises(ExecutionHalt, match="async nope"):
            await chain.run(RequestContext(), {}, "", {})
