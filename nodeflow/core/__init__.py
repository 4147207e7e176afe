"""Core workflow components."""

from .errors import (
    DeserializationError,
    ExecutionFailure,
    MalformedRecord,
    ParallelExecutionFailure,
    ReconstructionFailure,
    SerializationError,
    UnknownNodeType,
    WorkflowError,
)
from .functions import FunctionRegistry, node_function
from .nodes import FunctionNode, ParallelGroup, SequentialGroup
from .records import NodeType
from .registry import NodeRegistry
from .workflow import Workflow

__all__ = [
    "Workflow",
    "FunctionNode",
    "SequentialGroup",
    "ParallelGroup",
    "NodeType",
    "NodeRegistry",
    "FunctionRegistry",
    "node_function",
    "WorkflowError",
    "DeserializationError",
    "UnknownNodeType",
    "MalformedRecord",
    "ReconstructionFailure",
    "SerializationError",
    "ExecutionFailure",
    "ParallelExecutionFailure",
]
