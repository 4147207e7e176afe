"""
Serialized node records.

Pydantic models describing the self-describing record each node dumps to and
loads from. Field declaration order is the serialized key order: id, name,
type, then the variant payload.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict


class NodeType(str, Enum):
    """Type tags of the node variants."""

    FUNCTION = "FunctionNode"
    SEQUENTIAL = "SequentialGroup"
    PARALLEL = "ParallelGroup"


class NodeRecord(BaseModel):
    """Fields shared by every node record."""

    model_config = ConfigDict(strict=True)

    id: str
    name: str
    type: str


class FunctionNodeRecord(NodeRecord):
    """A function node: ``func`` is a registered key or source text."""

    func: str


class GroupRecord(NodeRecord):
    """A sequential or parallel group; children are loaded separately."""

    children: List[Dict[str, Any]]
