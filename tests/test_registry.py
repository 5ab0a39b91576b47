"""Tests for the tool registry."""

from modo.plans.handlers import (
    WorkoutPlanHandler,
    plan_handlers,
)
from modo.tools import (
    FunctionRegistry,
    ToolHandler,
)


class NamedHandler(ToolHandler):
    name = "named"
    description = "A test tool"

    async def execute(self, arguments: str, request_id: str) -> str:
        return "first"


class OtherHandler(NamedHandler):
    async def execute(self, arguments: str, request_id: str) -> str:
        return "second"


def test_register_and_resolve() -> None:
    """A registered handler can be found by name; absent names resolve to None."""

    registry = FunctionRegistry()
    handler = NamedHandler()
    registry.register("named", handler)

    assert registry.has("named")
    assert "named" in registry
    assert registry.resolve("named") is handler
    assert registry.resolve("missing") is None
    assert not registry.has("missing")


def test_register_overwrites_silently() -> None:
    """Registering the same name twice keeps only the latest handler."""

    registry = FunctionRegistry()
    registry.register("named", NamedHandler())
    replacement = OtherHandler()
    registry.register("named", replacement)

    assert len(registry) == 1
    assert registry.resolve("named") is replacement
    assert registry.names() == {"named"}


def test_schemas_sorted_by_name() -> None:
    """Schemas of every handler are exported in name order, with the strict flag kept."""

    registry = FunctionRegistry()
    registry.register_many(plan_handlers())
    registry.register_many([NamedHandler()])

    schemas = registry.schemas()
    assert [schema.name for schema in schemas] == sorted(registry.names())

    workout = next(schema for schema in schemas if schema.name == WorkoutPlanHandler.name)
    function = workout.to_function()
    assert function["strict"] is True
    assert "exercises" in function["parameters"]["properties"]

    named = next(schema for schema in schemas if schema.name == "named")
    assert "strict" not in named.to_function()
