"""
Function Registry.

Named callables that function nodes can reference by key. A node whose
callable is registered serializes the key instead of its source text, and
loading resolves the key back to the same callable, so no code is executed
from the serialized document.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional
import inspect
import keyword


def is_function_key(text: str) -> bool:
    """Whether text is a dotted name of non-keyword identifiers."""
    return all(
        part.isidentifier() and not keyword.iskeyword(part)
        for part in text.split(".")
    )


class FunctionRegistry:
    """
    A registry of node functions.

    Each function takes the workflow context as its only argument and may be
    a plain function or a coroutine function.
    """

    def __init__(self):
        self._functions: Dict[str, Dict[str, Any]] = {}

    def register(
        self, name: Optional[str] = None, description: Optional[str] = None
    ) -> Callable:
        """
        Decorator to register a node function.

        Args:
            name: Optional key for the function. Defaults to the function name.
            description: Optional description. Defaults to the docstring.

        Example:
            @registry.register(name="geometry.sum_squares")
            def sum_squares(context):
                context["c_squared"] = context["a2"] + context["b2"]
        """

        def decorator(func: Callable) -> Callable:
            key = name or func.__name__
            if not is_function_key(key):
                raise ValueError(f"Invalid function key: {key!r}")
            desc = description or func.__doc__ or ""

            self._functions[key] = {
                "function": func,
                "description": desc.strip(),
                "is_async": inspect.iscoroutinefunction(func),
            }
            return func

        return decorator

    def add(
        self,
        func: Callable,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        """Programmatically register a node function."""
        self.register(name=name, description=description)(func)

    def get(self, name: str) -> Optional[Callable]:
        """Get a registered function by key."""
        entry = self._functions.get(name)
        return entry["function"] if entry else None

    def has(self, name: str) -> bool:
        """Check if a key is registered."""
        return name in self._functions

    def name_of(self, func: Callable) -> Optional[str]:
        """Return the key a callable is registered under, if any."""
        for key, entry in self._functions.items():
            if entry["function"] is func:
                return key
        return None

    def list_functions(self) -> list[Dict[str, Any]]:
        """List all registered functions with their metadata."""
        return [
            {
                "name": key,
                "description": entry["description"],
                "is_async": entry["is_async"],
            }
            for key, entry in self._functions.items()
        ]


# Global function registry instance
_global_registry = FunctionRegistry()


def node_function(
    name: Optional[str] = None, description: Optional[str] = None
) -> Callable:
    """
    Decorator to register a node function in the global registry.

    Example:
        @node_function(name="geometry.hypotenuse")
        def hypotenuse(context):
            context["c"] = math.sqrt(context["c_squared"])
    """
    return _global_registry.register(name=name, description=description)


def get_global_registry() -> FunctionRegistry:
    """Get the global function registry instance."""
    return _global_registry
