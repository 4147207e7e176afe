"""Source-text round trip for function node callables.

``callable_source`` renders a function or lambda as normalized source text and
``compile_source`` turns such text back into a callable.

Compiling executes the text as live code. The AST checks and the restricted
builtins below are a lightweight safety layer, NOT a sandbox: only load
workflow definitions produced by a trusted toolchain. Untrusted definitions
must reference registered functions instead (see ``functions.py``).
"""

from __future__ import annotations

import ast
import asyncio
import inspect
import math
import textwrap
import time
from typing import Any, Callable, Dict, List, Optional

from . import config
from .errors import ReconstructionFailure, SerializationError

SOURCE_FILENAME = "<workflow_node>"

SAFE_BUILTINS: Dict[str, Any] = {
    "len": len,
    "range": range,
    "min": min,
    "max": max,
    "sum": sum,
    "any": any,
    "all": all,
    "sorted": sorted,
    "reversed": reversed,
    "enumerate": enumerate,
    "map": map,
    "filter": filter,
    "zip": zip,
    "abs": abs,
    "round": round,
    "pow": pow,
    "divmod": divmod,
    "isinstance": isinstance,
    "repr": repr,
    "print": print,
    "bool": bool,
    "int": int,
    "float": float,
    "str": str,
    "dict": dict,
    "list": list,
    "set": set,
    "tuple": tuple,
    "Exception": Exception,
    "ValueError": ValueError,
    "KeyError": KeyError,
    "TypeError": TypeError,
    "RuntimeError": RuntimeError,
}

PROVIDED_GLOBALS: Dict[str, Any] = {
    "math": math,
    "time": time,
    "asyncio": asyncio,
}

_MISSING = object()


def _top_level_lambdas(tree: ast.AST) -> List[ast.Lambda]:
    lambdas = [n for n in ast.walk(tree) if isinstance(n, ast.Lambda)]
    nested = set()
    for outer in lambdas:
        for inner in ast.walk(outer.body):
            if isinstance(inner, ast.Lambda):
                nested.add(id(inner))
    return [n for n in lambdas if id(n) not in nested]


def _lambda_source(raw: str, label: str) -> str:
    try:
        tree: Optional[ast.AST] = ast.parse(raw)
    except SyntaxError:
        tree = None

    if tree is not None:
        lambdas = _top_level_lambdas(tree)
        if len(lambdas) != 1:
            raise SerializationError(
                f"Cannot isolate {label}: {len(lambdas)} lambdas on its source line"
            )
        return ast.unparse(lambdas[0])

    # The captured lines are a fragment of a larger expression (e.g. a call
    # argument); take the longest prefix starting at the lambda that parses.
    start = raw.find("lambda")
    candidate = raw[start:] if start >= 0 else ""
    if candidate.count("lambda") > 1:
        raise SerializationError(f"Cannot isolate {label}: several lambdas in source")
    for end in range(len(candidate), 0, -1):
        try:
            expr = ast.parse(candidate[:end].strip(), mode="eval")
        except SyntaxError:
            continue
        if isinstance(expr.body, ast.Lambda):
            return ast.unparse(expr.body)
    raise SerializationError(f"Cannot extract source of {label}")


def _unresolved_names(tree: ast.AST) -> List[str]:
    """Names the source reads that it neither binds nor gets from the namespace."""
    bound = set()
    loaded = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Name):
            if isinstance(node.ctx, ast.Load):
                loaded.add(node.id)
            else:
                bound.add(node.id)
        elif isinstance(node, ast.arg):
            bound.add(node.arg)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            bound.add(node.name)
        elif isinstance(node, ast.ExceptHandler) and node.name:
            bound.add(node.name)
    return sorted(loaded - bound - set(SAFE_BUILTINS) - set(PROVIDED_GLOBALS))


def _check_portable(
    func: Callable, source: str, label: str, node_id: Optional[str]
) -> None:
    missing = _unresolved_names(ast.parse(source))
    if missing:
        raise SerializationError(
            f"{label} uses names unavailable to reconstructed source: "
            f"{', '.join(missing)}; register it by name instead",
            node_id=node_id,
        )

    # a global must be the very object the reconstructed namespace provides
    referenced = inspect.getclosurevars(func).globals
    for name, value in referenced.items():
        if name == func.__name__:
            continue
        provided = PROVIDED_GLOBALS.get(name, SAFE_BUILTINS.get(name, _MISSING))
        if value is not provided:
            raise SerializationError(
                f"{label} depends on module global {name!r}, which reconstructed "
                "source cannot see; register it by name instead",
                node_id=node_id,
            )


def callable_source(func: Callable, node_id: Optional[str] = None) -> str:
    """
    Render a node callable as normalized source text.

    Functions are returned as a single ``def``/``async def`` with decorators
    stripped; lambdas as the bare lambda expression. The text is produced by
    ``ast.unparse`` so it is stable across calls.

    Raises:
        SerializationError: The callable has no retrievable source, closes
            over local variables, cannot be isolated on its source line, or
            reads globals that ``compile_source`` would not provide.
    """
    label = getattr(func, "__qualname__", repr(func))
    code = getattr(func, "__code__", None)
    if code is None:
        raise SerializationError(
            f"{label} is not a plain function; register it by name instead",
            node_id=node_id,
        )
    if code.co_freevars:
        raise SerializationError(
            f"{label} closes over {', '.join(code.co_freevars)}; "
            "closures cannot be serialized as source",
            node_id=node_id,
        )

    try:
        raw = textwrap.dedent(inspect.getsource(func))
    except (OSError, TypeError) as exc:
        raise SerializationError(
            f"Source of {label} is unavailable: {exc}", node_id=node_id
        ) from exc

    source = None
    try:
        if func.__name__ == "<lambda>":
            source = _lambda_source(raw, label)
        else:
            tree = ast.parse(raw)
    except SerializationError as exc:
        exc.node_id = node_id
        raise
    except SyntaxError as exc:
        raise SerializationError(
            f"Cannot parse source of {label}", node_id=node_id
        ) from exc

    if source is None:
        for stmt in tree.body:
            if (
                isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef))
                and stmt.name == func.__name__
            ):
                stmt.decorator_list = []
                source = ast.unparse(stmt)
                break
        else:
            raise SerializationError(
                f"Cannot locate definition of {label}", node_id=node_id
            )

    _check_portable(func, source, label, node_id)
    return source


def _check_restricted(tree: ast.AST) -> None:
    for node in ast.walk(tree):
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            raise ReconstructionFailure(
                "Import statements are not allowed in node source"
            )
        if (
            isinstance(node, ast.Call)
            and isinstance(node.func, ast.Name)
            and node.func.id == "__import__"
        ):
            raise ReconstructionFailure("Use of __import__ is not allowed")
        if isinstance(node, ast.Attribute) and node.attr.startswith("__"):
            raise ReconstructionFailure(
                f"Access to dunder attribute {node.attr!r} is not allowed"
            )

    missing = _unresolved_names(tree)
    if missing:
        raise ReconstructionFailure(f"Undefined names in source: {', '.join(missing)}")


def compile_source(source: str, max_size: Optional[int] = None) -> Callable:
    """
    Compile node source text back into a callable.

    The source must be exactly one function definition or one lambda
    expression. It runs with a restricted builtins table; ``math``, ``time``
    and ``asyncio`` are available as globals. Every name the source reads
    must be bound in the source itself or provided by that namespace.

    Raises:
        ReconstructionFailure: The text is too large, does not parse, uses a
            rejected construct or an undefined name, or does not define a
            single callable.
    """
    limit = max_size if max_size is not None else config.max_source_size()
    if len(source) > limit:
        raise ReconstructionFailure(
            f"Source payload too large ({len(source)} > {limit} characters)"
        )

    try:
        tree = ast.parse(source)
    except SyntaxError as exc:
        raise ReconstructionFailure(
            f"Invalid source: {exc.msg} (line {exc.lineno})"
        ) from exc

    _check_restricted(tree)

    if len(tree.body) != 1:
        raise ReconstructionFailure(
            "Source must contain a single function definition or lambda expression"
        )

    namespace: Dict[str, Any] = {"__builtins__": dict(SAFE_BUILTINS)}
    namespace.update(PROVIDED_GLOBALS)
    stmt = tree.body[0]
    try:
        if isinstance(stmt, ast.Expr) and isinstance(stmt.value, ast.Lambda):
            code = compile(ast.Expression(stmt.value), SOURCE_FILENAME, "eval")
            return eval(code, namespace)
        if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
            exec(compile(tree, SOURCE_FILENAME, "exec"), namespace)
            return namespace[stmt.name]
    except Exception as exc:
        raise ReconstructionFailure(f"Evaluating source failed: {exc}") from exc

    raise ReconstructionFailure(
        "Source must contain a single function definition or lambda expression"
    )
