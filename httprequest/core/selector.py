"""Choose between the native and the fallback transport."""

from __future__ import annotations

import importlib.util
from enum import Enum

NATIVE_MODULE = "requests"


class Backend(str, Enum):
    NATIVE = "native"
    FALLBACK = "fallback"


def native_available() -> bool:
    """Whether the native transport library can be imported right now."""

    return importlib.util.find_spec(NATIVE_MODULE) is not None


def select_backend(prefer_native: bool, available: bool) -> Backend:
    if prefer_native and available:
        return Backend.NATIVE
    return Backend.FALLBACK


__all__ = ["Backend", "native_available", "select_backend"]
