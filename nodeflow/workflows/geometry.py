"""
Hypotenuse Workflow.

A sample workflow demonstrating the engine:
1. Square both legs concurrently (parallel group)
2. Sum the squares
3. Take the square root

Context in: {"a": 3, "b": 4}. Context out adds a_squared, b_squared,
c_squared and c.
"""

from __future__ import annotations

import math
from typing import Any, Dict

from ..core.functions import get_global_registry
from ..core.nodes import FunctionNode, ParallelGroup, SequentialGroup
from ..core.workflow import Workflow

SQUARE_A = "geometry.square_a"
SQUARE_B = "geometry.square_b"
SUM_SQUARES = "geometry.sum_squares"
HYPOTENUSE = "geometry.hypotenuse"


# ============================================================================
# Node Functions
# ============================================================================


def square_a(context: Dict[str, Any]) -> None:
    """Square leg a."""
    context["a_squared"] = context["a"] ** 2


def square_b(context: Dict[str, Any]) -> None:
    """Square leg b."""
    context["b_squared"] = context["b"] ** 2


def sum_squares(context: Dict[str, Any]) -> None:
    """Add the squared legs."""
    context["c_squared"] = context["a_squared"] + context["b_squared"]


async def hypotenuse(context: Dict[str, Any]) -> None:
    """Square root of the summed squares."""
    context["c"] = math.sqrt(context["c_squared"])


# ============================================================================
# Workflow Definition
# ============================================================================


def create_hypotenuse_workflow() -> Workflow:
    """
    Create the hypotenuse workflow.

    Flow:
    (square_a | square_b) -> sum_squares -> hypotenuse
    """
    register_geometry_functions()
    squares = ParallelGroup(
        "squares",
        "square_legs",
        [
            FunctionNode("square_a", "square leg a", square_a, ref=SQUARE_A),
            FunctionNode("square_b", "square leg b", square_b, ref=SQUARE_B),
        ],
    )
    root = SequentialGroup(
        "root",
        "hypotenuse",
        [
            squares,
            FunctionNode("sum_squares", "sum of squares", sum_squares, ref=SUM_SQUARES),
            FunctionNode("hypotenuse", "square root", hypotenuse, ref=HYPOTENUSE),
        ],
    )
    return Workflow(root)


def register_geometry_functions() -> None:
    """Register the geometry node functions in the global registry."""
    registry = get_global_registry()
    registry.add(square_a, name=SQUARE_A)
    registry.add(square_b, name=SQUARE_B)
    registry.add(sum_squares, name=SUM_SQUARES)
    registry.add(hypotenuse, name=HYPOTENUSE)
