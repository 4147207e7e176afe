"""Environment-driven settings, read at call time."""

import os

ALLOW_SOURCE_ENV = "NODEFLOW_ALLOW_SOURCE"
MAX_SOURCE_SIZE_ENV = "NODEFLOW_MAX_SOURCE_SIZE"
DEFAULT_MAX_SOURCE_SIZE = 20000

_TRUTHY = ("1", "true", "True")


def source_loading_enabled() -> bool:
    """Whether function nodes may be rebuilt from serialized source text."""
    return os.environ.get(ALLOW_SOURCE_ENV, "0") in _TRUTHY


def max_source_size() -> int:
    raw = os.environ.get(MAX_SOURCE_SIZE_ENV)
    if not raw:
        return DEFAULT_MAX_SOURCE_SIZE
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{MAX_SOURCE_SIZE_ENV} must be an integer, got {raw!r}")
