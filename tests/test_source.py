import asyncio

import pytest

from nodeflow.core.errors import ReconstructionFailure, SerializationError
from nodeflow.core.source import callable_source, compile_source


def passthrough(func):
    return func


@passthrough
def decorated(context):
    # comments are dropped by normalization
    context["decorated"] = True


async def wait_and_set(context):
    await asyncio.sleep(0)
    context["waited"] = True


def test_decorators_and_comments_are_stripped():
    source = callable_source(decorated)
    assert source == "def decorated(context):\n    context['decorated'] = True"


def test_async_function_round_trip():
    func = compile_source(callable_source(wait_and_set))
    context = {}
    asyncio.run(func(context))
    assert context == {"waited": True}


def test_lambda_round_trip():
    scale = lambda context: context.update(n=context["n"] * 10)  # noqa: E731
    func = compile_source(callable_source(scale))
    context = {"n": 2}
    func(context)
    assert context["n"] == 20


def test_builtin_has_no_source():
    with pytest.raises(SerializationError):
        callable_source(len)


def test_restricted_builtins():
    with pytest.raises(ReconstructionFailure) as excinfo:
        compile_source("def opener(context):\n    open('/etc/passwd')")
    assert "open" in str(excinfo.value)


def test_helper_reference_rejected_when_serializing():
    def uses_helper(context):
        context["value"] = passthrough(1)

    with pytest.raises(SerializationError) as excinfo:
        callable_source(uses_helper)
    assert "passthrough" in str(excinfo.value)


def test_shadowed_module_global_rejected(monkeypatch):
    monkeypatch.setitem(globals(), "math", object())

    def uses_math(context):
        context["root"] = math.sqrt(4)

    with pytest.raises(SerializationError) as excinfo:
        callable_source(uses_math)
    assert "'math'" in str(excinfo.value)


@pytest.mark.parametrize(
    "source",
    [
        "x = 1",
        "def a(c):\n    pass\ndef b(c):\n    pass",
        "def f(c):\n    __import__('os')",
        "def f(c):\n    return c.__class__",
        "from os import path",
    ],
)
def test_rejected_sources(source):
    with pytest.raises(ReconstructionFailure):
        compile_source(source)


def test_source_size_limit(monkeypatch):
    source = "def f(context):\n    context['k'] = 1"
    with pytest.raises(ReconstructionFailure):
        compile_source(source, max_size=10)
    monkeypatch.setenv("NODEFLOW_MAX_SOURCE_SIZE", "10")
    with pytest.raises(ReconstructionFailure):
        compile_source(source)
