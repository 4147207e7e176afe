"""
Node Registry.

Dispatches serialized records to the loader for their type tag. Loaders
validate the record, load child records through the same registry, and only
then construct the node, so a failure anywhere in a subtree constructs
nothing.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Type, TypeVar

from pydantic import ValidationError

from . import config
from .errors import MalformedRecord, ReconstructionFailure, UnknownNodeType
from .functions import FunctionRegistry, get_global_registry, is_function_key
from .nodes import BaseNode, FunctionNode, ParallelGroup, SequentialGroup
from .records import FunctionNodeRecord, GroupRecord, NodeRecord, NodeType
from .source import compile_source

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=NodeRecord)
Loader = Callable[[Mapping[str, Any], "NodeRegistry"], BaseNode]


def load_function_node(record: Mapping[str, Any], registry: "NodeRegistry") -> BaseNode:
    data = registry.validate(FunctionNodeRecord, record)
    functions = registry.functions

    if functions.has(data.func):
        return FunctionNode(
            data.id,
            data.name,
            functions.get(data.func),
            ref=data.func,
            functions=functions,
        )
    if is_function_key(data.func):
        raise ReconstructionFailure(
            f"function {data.func!r} is not registered", node_id=data.id
        )
    if not registry.allow_source:
        raise ReconstructionFailure(
            "source reconstruction is disabled; register the function or "
            "load with allow_source=True",
            node_id=data.id,
        )

    try:
        func = compile_source(data.func)
    except ReconstructionFailure as exc:
        raise ReconstructionFailure(str(exc), node_id=data.id) from exc
    logger.debug("Reconstructed function node %s from source", data.id)
    return FunctionNode(data.id, data.name, func, source=data.func)


def _group_loader(cls: Type[BaseNode]) -> Loader:
    def load_group(record: Mapping[str, Any], registry: "NodeRegistry") -> BaseNode:
        data = registry.validate(GroupRecord, record)
        children = [registry.load(child) for child in data.children]
        return cls(data.id, data.name, children)

    return load_group


DEFAULT_LOADERS: Dict[NodeType, Loader] = {
    NodeType.FUNCTION: load_function_node,
    NodeType.SEQUENTIAL: _group_loader(SequentialGroup),
    NodeType.PARALLEL: _group_loader(ParallelGroup),
}


class NodeRegistry:
    """
    Maps node type tags to loaders.

    Args:
        functions: Registry used to resolve function keys. Defaults to the
            global function registry.
        allow_source: Whether function nodes may be compiled from source
            text. Defaults to the NODEFLOW_ALLOW_SOURCE environment setting.
        loaders: Loader per node type; every NodeType member must be covered.
    """

    def __init__(
        self,
        functions: Optional[FunctionRegistry] = None,
        allow_source: Optional[bool] = None,
        loaders: Optional[Mapping[NodeType, Loader]] = None,
    ):
        self.functions = functions or get_global_registry()
        self.allow_source = (
            config.source_loading_enabled() if allow_source is None else allow_source
        )
        self._loaders: Dict[NodeType, Loader] = dict(loaders or DEFAULT_LOADERS)
        missing = [t.value for t in NodeType if t not in self._loaders]
        if missing:
            raise ValueError(
                f"No loader registered for node types: {', '.join(missing)}"
            )

    def validate(self, model: Type[R], record: Mapping[str, Any]) -> R:
        """Validate a record against its model, raising MalformedRecord."""
        try:
            return model.model_validate(dict(record))
        except ValidationError as exc:
            error = exc.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or None
            raise MalformedRecord(
                f"Invalid {record.get('type')} record "
                f"(id={record.get('id')!r}): {field}: {error['msg']}",
                field=field,
            ) from exc

    def load(self, record: Any) -> BaseNode:
        """Rebuild a node (and its subtree) from a record."""
        if not isinstance(record, Mapping):
            raise MalformedRecord(
                f"Node record must be an object, got {type(record).__name__}"
            )
        if "type" not in record:
            raise MalformedRecord(
                "Node record is missing required field 'type'", field="type"
            )

        tag = record["type"]
        if not isinstance(tag, str):
            raise MalformedRecord(
                f"Node type must be a string, got {tag!r}", field="type"
            )
        try:
            node_type = NodeType(tag)
        except ValueError:
            raise UnknownNodeType(tag) from None

        return self._loaders[node_type](record, self)
