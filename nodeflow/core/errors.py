"""Workflow exceptions.

Hierarchy::

    WorkflowError
      DeserializationError          load() could not rebuild a tree
        UnknownNodeType             record carries an unregistered type tag
        MalformedRecord             required field missing or wrong shape
        ReconstructionFailure       function payload could not become a callable
      SerializationError            a node could not be rendered as a record
      ExecutionFailure              a function node raised during run()
        ParallelExecutionFailure    one or more parallel children failed
"""

from __future__ import annotations

from typing import Any, List, Optional


class WorkflowError(Exception):
    """Base exception for all workflow errors."""

    pass


class DeserializationError(WorkflowError):
    """Raised when serialized workflow text or records cannot be loaded."""

    pass


class UnknownNodeType(DeserializationError):
    """Raised when a record's type tag is not in the node registry."""

    def __init__(self, tag: Any):
        self.tag = tag
        super().__init__(f"Unknown node type: {tag!r}")


class MalformedRecord(DeserializationError):
    """Raised when a record is missing a required field or has the wrong shape."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class ReconstructionFailure(DeserializationError):
    """Raised when a function node's payload cannot be turned into a callable."""

    def __init__(self, message: str, node_id: Optional[str] = None):
        self.node_id = node_id
        if node_id is not None:
            message = f"Cannot reconstruct function node '{node_id}': {message}"
        super().__init__(message)


class SerializationError(WorkflowError):
    """Raised when a node's callable has no portable representation."""

    def __init__(self, message: str, node_id: Optional[str] = None):
        self.node_id = node_id
        super().__init__(message)


class ExecutionFailure(WorkflowError):
    """Raised when a node fails while the workflow is running.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, node_id: str, node_name: str, message: str):
        self.node_id = node_id
        self.node_name = node_name
        super().__init__(message)


class ParallelExecutionFailure(ExecutionFailure):
    """Raised by a parallel group after all children finished and some failed.

    ``errors`` holds every child failure in the order it was observed.
    """

    def __init__(self, node_id: str, node_name: str, errors: List[BaseException]):
        self.errors = list(errors)
        summary = "; ".join(str(e) for e in self.errors)
        super().__init__(
            node_id,
            node_name,
            f"{len(self.errors)} child node(s) of parallel group '{node_id}' "
            f"failed: {summary}",
        )
