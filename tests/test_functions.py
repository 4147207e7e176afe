import pytest

from nodeflow.core.errors import ReconstructionFailure
from nodeflow.core.functions import (
    FunctionRegistry,
    get_global_registry,
    is_function_key,
    node_function,
)
from nodeflow.core.nodes import FunctionNode
from nodeflow.core.records import NodeType
from nodeflow.core.registry import DEFAULT_LOADERS, NodeRegistry
from nodeflow.core.workflow import Workflow


def test_register_decorator_returns_function_unchanged():
    registry = FunctionRegistry()

    @registry.register(name="counter.bump", description="Bump the counter")
    def bump(context):
        context["count"] = context.get("count", 0) + 1

    assert registry.get("counter.bump") is bump
    assert registry.has("counter.bump")
    assert registry.name_of(bump) == "counter.bump"
    assert registry.list_functions() == [
        {"name": "counter.bump", "description": "Bump the counter", "is_async": False}
    ]


def test_add_defaults_to_function_name_and_docstring():
    registry = FunctionRegistry()

    async def fetch(context):
        """Fetch something."""

    registry.add(fetch)
    info = registry.list_functions()[0]
    assert info == {"name": "fetch", "description": "Fetch something.", "is_async": True}
    assert registry.get("missing") is None
    assert registry.name_of(lambda c: None) is None


def test_invalid_key_rejected():
    with pytest.raises(ValueError):
        FunctionRegistry().add(lambda c: None, name="not a key")


def test_global_decorator_sets_node_ref():
    @node_function(name="tests.global_marker")
    def marker(context):
        context["marked"] = True

    assert get_global_registry().get("tests.global_marker") is marker
    node = FunctionNode("m", "marker", marker)
    assert node.ref == "tests.global_marker"
    assert node.dump()["func"] == "tests.global_marker"


def test_node_registry_requires_loader_for_every_type():
    loaders = dict(DEFAULT_LOADERS)
    del loaders[NodeType.PARALLEL]
    with pytest.raises(ValueError) as excinfo:
        NodeRegistry(loaders=loaders)
    assert "ParallelGroup" in str(excinfo.value)


def test_node_registry_allow_source_defaults_to_environment(monkeypatch):
    monkeypatch.setenv("NODEFLOW_ALLOW_SOURCE", "true")
    assert NodeRegistry().allow_source is True
    monkeypatch.setenv("NODEFLOW_ALLOW_SOURCE", "0")
    assert NodeRegistry().allow_source is False
    assert NodeRegistry(allow_source=True).allow_source is True


@pytest.mark.parametrize("key", ["lambda", "None", "geometry.def", "a..b"])
def test_keywords_are_not_function_keys(key):
    assert not is_function_key(key)
    with pytest.raises(ValueError):
        FunctionRegistry().add(lambda c: None, name=key)


def test_dotted_identifiers_are_function_keys():
    assert is_function_key("geometry.square_a")
    assert is_function_key("bump")


def test_keyword_func_value_is_treated_as_source():
    text = '{"id":"f","name":"f","type":"FunctionNode","func":"None"}'
    with pytest.raises(ReconstructionFailure) as excinfo:
        Workflow.load(text, functions=FunctionRegistry(), allow_source=True)
    assert "not registered" not in str(excinfo.value)


def test_explicit_ref_must_be_registered_for_the_callable():
    registry = FunctionRegistry()

    def bump(context):
        context["count"] = 1

    def other(context):
        pass

    registry.add(bump, name="counter.bump")
    registry.add(other, name="counter.other")

    node = FunctionNode("b", "bump", bump, ref="counter.bump", functions=registry)
    assert node.dump()["func"] == "counter.bump"

    with pytest.raises(ValueError):
        FunctionNode("b", "bump", bump, ref="counter.bmup", functions=registry)
    with pytest.raises(ValueError):
        FunctionNode("b", "bump", bump, ref="counter.other", functions=registry)
    with pytest.raises(ValueError):
        FunctionNode("b", "bump", bump, ref="counter.bump")
