"""
Workflow nodes.

A workflow is a tree of nodes sharing one context mapping:
- FunctionNode: runs a callable that reads/modifies the context
- SequentialGroup: runs children one after another, stopping at the first failure
- ParallelGroup: runs children concurrently and waits for all of them

Nodes are structurally immutable and hold no per-run state, so the same tree
can be run repeatedly. Partial context changes made before a failure are not
rolled back.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .errors import ExecutionFailure, ParallelExecutionFailure
from .functions import FunctionRegistry, get_global_registry
from .records import FunctionNodeRecord, GroupRecord, NodeType
from .source import callable_source

Context = Dict[str, Any]

logger = logging.getLogger(__name__)


class BaseNode:
    """Common interface of all node variants."""

    node_type: NodeType

    def __init__(self, id: str, name: str):
        self.id = id
        self.name = name

    async def execute(self, context: Context) -> None:
        """Run this node (and its descendants) against the context."""
        raise NotImplementedError

    def dump(self) -> Dict[str, Any]:
        """Render this node as a self-describing record."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, name={self.name!r})"


class FunctionNode(BaseNode):
    """
    A node wrapping one callable over the context.

    The callable may be a plain function (run in a worker thread) or a
    coroutine function (awaited). Its return value is ignored.

    When serialized, the node writes the callable's registered key if it has
    one, otherwise its source text. An explicit ``ref`` must be registered in
    ``functions`` (the global registry by default) for this same callable.
    """

    node_type = NodeType.FUNCTION

    def __init__(
        self,
        id: str,
        name: str,
        func: Callable[[Context], Any],
        ref: Optional[str] = None,
        source: Optional[str] = None,
        functions: Optional[FunctionRegistry] = None,
    ):
        super().__init__(id, name)
        if not callable(func):
            raise TypeError(f"FunctionNode '{id}' requires a callable, got {func!r}")
        registry = functions or get_global_registry()
        if ref is None:
            ref = registry.name_of(func)
        elif registry.get(ref) is not func:
            raise ValueError(
                f"FunctionNode '{id}': {ref!r} is not registered for {func!r}"
            )
        self.func = func
        self.ref = ref
        self._source = source

    @property
    def source(self) -> str:
        """Normalized source text of the callable (computed once)."""
        if self._source is None:
            self._source = callable_source(self.func, node_id=self.id)
        return self._source

    async def execute(self, context: Context) -> None:
        logger.debug("Executing function node %s (%s)", self.id, self.name)
        try:
            if inspect.iscoroutinefunction(self.func):
                await self.func(context)
            else:
                result = await asyncio.to_thread(self.func, context)
                if inspect.isawaitable(result):
                    await result
        except ExecutionFailure:
            raise
        except Exception as e:
            logger.debug("Function node %s failed: %s", self.id, e)
            raise ExecutionFailure(
                self.id, self.name, f"Error in node {self.id} ({self.name}): {e}"
            ) from e
        logger.debug("Function node %s completed", self.id)

    def dump(self) -> Dict[str, Any]:
        return FunctionNodeRecord(
            id=self.id,
            name=self.name,
            type=self.node_type.value,
            func=self.ref if self.ref is not None else self.source,
        ).model_dump()


class _Group(BaseNode):
    """A node owning an ordered sequence of child nodes."""

    def __init__(self, id: str, name: str, children: Iterable[BaseNode] = ()):
        super().__init__(id, name)
        self.children: Tuple[BaseNode, ...] = tuple(children)
        for child in self.children:
            if not isinstance(child, BaseNode):
                raise TypeError(
                    f"{type(self).__name__} '{id}' children must be nodes, "
                    f"got {child!r}"
                )

    def dump(self) -> Dict[str, Any]:
        return GroupRecord(
            id=self.id,
            name=self.name,
            type=self.node_type.value,
            children=[child.dump() for child in self.children],
        ).model_dump()


class SequentialGroup(_Group):
    """Runs children strictly in order; the first failure stops the group."""

    node_type = NodeType.SEQUENTIAL

    async def execute(self, context: Context) -> None:
        logger.debug(
            "Executing sequential group %s with %d children",
            self.id,
            len(self.children),
        )
        for child in self.children:
            await child.execute(context)


class ParallelGroup(_Group):
    """
    Runs children concurrently and waits for every one of them.

    Siblings are never cancelled when one fails. After all children finish,
    any failures are raised together as a ParallelExecutionFailure.
    """

    node_type = NodeType.PARALLEL

    async def execute(self, context: Context) -> None:
        logger.debug(
            "Executing parallel group %s with %d children", self.id, len(self.children)
        )
        failures: List[Exception] = []

        async def run_child(child: BaseNode) -> None:
            try:
                await child.execute(context)
            except Exception as e:
                failures.append(e)

        await asyncio.gather(*(run_child(child) for child in self.children))

        if failures:
            raise ParallelExecutionFailure(
                self.id, self.name, failures
            ) from failures[0]
