"""
Basic sanity tests for the function-call dispatcher.

Run with:
$ pytest -q
"""

import json

import pytest

from modo.agent.tool_executor import FunctionCallDispatcher
from modo.core.errors import (
    EmptyPlan,
    ExecutionFailed,
    HandlerNotFound,
    InvalidArguments,
)
from modo.tools import (
    FunctionRegistry,
    ToolHandler,
)


class AddHandler(ToolHandler):
    """Return the sum of two integers (used only for tests)."""

    name = "add"

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    async def execute(self, arguments: str, request_id: str) -> int:
        self.calls.append((arguments, request_id))
        try:
            args = json.loads(arguments)
            return args["a"] + args["b"]
        except KeyError as exc:
            raise InvalidArguments(f"missing {exc}") from exc


class BrokenHandler(ToolHandler):
    name = "broken"

    async def execute(self, arguments: str, request_id: str) -> None:
        raise ZeroDivisionError("boom")


class EmptyPlanHandler(ToolHandler):
    name = "empty_plan"

    async def execute(self, arguments: str, request_id: str) -> None:
        raise EmptyPlan("workout plan")


@pytest.fixture
def dispatcher_and_add() -> tuple[FunctionCallDispatcher, AddHandler]:
    registry = FunctionRegistry()
    add = AddHandler()
    registry.register_many([add, BrokenHandler(), EmptyPlanHandler()])
    return FunctionCallDispatcher(registry), add


@pytest.mark.asyncio
async def test_dispatch_success(dispatcher_and_add) -> None:
    """Dispatcher should invoke the handler once with the exact arguments and request id."""

    dispatcher, add = dispatcher_and_add
    assert await dispatcher.dispatch("add", '{"a": 2, "b": 3}', "req-1") == 5
    assert add.calls == [('{"a": 2, "b": 3}', "req-1")]


@pytest.mark.asyncio
async def test_dispatch_missing(dispatcher_and_add) -> None:
    """Dispatcher should raise *HandlerNotFound* for an unknown tool and invoke nothing."""

    dispatcher, add = dispatcher_and_add
    with pytest.raises(HandlerNotFound) as info:
        await dispatcher.dispatch("not_a_tool", "{}", "req-1")
    assert "not_a_tool" in str(info.value)
    assert add.calls == []


@pytest.mark.asyncio
async def test_dispatch_bad_args(dispatcher_and_add) -> None:
    """*InvalidArguments* should propagate and be tagged with the tool name."""

    dispatcher, _ = dispatcher_and_add
    with pytest.raises(InvalidArguments) as info:
        await dispatcher.dispatch("add", '{"a": 2}', "req-1")  # missing 'b'
    assert info.value.name == "add"
    assert "Invalid function arguments" in str(info.value)


@pytest.mark.asyncio
async def test_dispatch_wraps_untyped_errors(dispatcher_and_add) -> None:
    """An arbitrary handler exception becomes *ExecutionFailed* with the original as cause."""

    dispatcher, _ = dispatcher_and_add
    with pytest.raises(ExecutionFailed) as info:
        await dispatcher.dispatch("broken", "{}", "req-1")
    assert info.value.name == "broken"
    assert "boom" in info.value.details
    assert isinstance(info.value.__cause__, ZeroDivisionError)


@pytest.mark.asyncio
async def test_dispatch_keeps_typed_errors(dispatcher_and_add) -> None:
    """Typed errors raised by a handler are not re-wrapped."""

    dispatcher, _ = dispatcher_and_add
    with pytest.raises(EmptyPlan):
        await dispatcher.dispatch("empty_plan", "{}", "req-1")


@pytest.mark.asyncio
async def test_dispatch_defaults_empty_arguments(dispatcher_and_add) -> None:
    """An empty argument string reaches the handler as ``{}``."""

    dispatcher, add = dispatcher_and_add
    with pytest.raises(InvalidArguments):
        await dispatcher.dispatch("add", "", "req-2")
    assert add.calls == [("{}", "req-2")]
