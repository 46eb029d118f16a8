"""Execution context exposed to tool scripts."""

from .accessors import AUTH_CAPABILITY, AuthAccessors, CapabilityMap, maybe_await
from .builder import ExecutionContext, ExecutionContextBuilder, RuntimeHandle
from .storage import StorageStats, TTLStorage
from .utilities import UtilityBundle

__all__ = [
    "AUTH_CAPABILITY",
    "AuthAccessors",
    "CapabilityMap",
    "maybe_await",
    "ExecutionContext",
    "ExecutionContextBuilder",
    "RuntimeHandle",
    "StorageStats",
    "TTLStorage",
    "UtilityBundle",
]
