"""
Workflow facade.

Wraps one root node and provides the run / serialize / load round trip.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

from .errors import MalformedRecord
from .functions import FunctionRegistry
from .nodes import BaseNode, Context, SequentialGroup
from .registry import NodeRegistry

logger = logging.getLogger(__name__)

EMPTY_ROOT_ID = "root"
EMPTY_ROOT_NAME = "sequential_root"


class Workflow:
    """
    A runnable, serializable tree of nodes.

    Example:
        workflow = Workflow(SequentialGroup("root", "main", [node_a, node_b]))
        await workflow.run(context)
        text = workflow.serialize()
        restored = Workflow.load(text)
    """

    def __init__(self, root: BaseNode):
        if not isinstance(root, BaseNode):
            raise TypeError(f"Workflow root must be a node, got {root!r}")
        self.root = root

    @classmethod
    def empty(cls) -> "Workflow":
        """A workflow whose root is an empty sequential group."""
        return cls(SequentialGroup(EMPTY_ROOT_ID, EMPTY_ROOT_NAME, []))

    async def run(self, context: Context) -> None:
        """
        Execute the tree against the context, mutating it in place.

        Raises:
            ExecutionFailure: A node failed. Changes made before the failure
                remain in the context.
        """
        logger.debug("Running workflow rooted at %s", self.root.id)
        await self.root.execute(context)

    def dump(self) -> Dict[str, Any]:
        """The root's nested record."""
        return self.root.dump()

    def serialize(self) -> str:
        """Compact JSON text of the tree; identical for an unchanged tree."""
        return json.dumps(self.dump(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        functions: Optional[FunctionRegistry] = None,
        allow_source: Optional[bool] = None,
    ) -> "Workflow":
        """Rebuild a workflow from an already decoded record."""
        registry = NodeRegistry(functions=functions, allow_source=allow_source)
        return cls(registry.load(record))

    @classmethod
    def load(
        cls,
        text: str,
        functions: Optional[FunctionRegistry] = None,
        allow_source: Optional[bool] = None,
    ) -> "Workflow":
        """
        Parse serialized text into a workflow.

        Args:
            text: Output of ``serialize``.
            functions: Registry used to resolve function keys (global by default).
            allow_source: Permit compiling function nodes from source text.
                Only enable for definitions from a trusted source.

        Raises:
            DeserializationError: Malformed text, unknown node type, missing
                fields, or a function that cannot be reconstructed.
        """
        try:
            record = json.loads(text)
        except (TypeError, ValueError) as exc:
            raise MalformedRecord(f"Workflow text is not valid JSON: {exc}") from exc
        return cls.from_record(record, functions=functions, allow_source=allow_source)

    def __repr__(self) -> str:
        return f"Workflow(root={self.root!r})"
