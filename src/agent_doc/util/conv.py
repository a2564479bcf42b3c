from __future__ import annotations

import os
from typing import Any

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def coerce_bool(value: Any, *, default: bool = False) -> bool:
    """Coerce a loosely-typed value into a boolean.

    Used for environment flags and YAML config, where values may arrive as
    strings like "false"/"0". Unknown strings fall back to `default` so that
    bool("false") == True never leaks through.
    """
    if value is None:
        return bool(default)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        s = value.strip().lower()
        if not s:
            return bool(default)
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
        return bool(default)
    return bool(value)


def env_flag(name: str) -> bool:
    """True when the variable is set to anything other than an explicit false value."""
    if name not in os.environ:
        return False
    return coerce_bool(os.environ.get(name), default=True)
