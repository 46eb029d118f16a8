"""Error types raised inside the tool runtime.

Purpose:
- Give each failure class of the runtime a typed exception so boundaries can
  decide whether to contain it (tool/capability calls) or surface it
  (session handshake).

Usage:
- Catch ``ToolRuntimeError`` for any runtime failure and inspect ``details``.
- ``ScriptExecutionFailure`` is converted into a structured payload by the
  tool catalog loader and never reaches the remote service as an exception.
"""

from __future__ import annotations

from typing import Any, Optional


class ToolRuntimeError(Exception):
    """Base error for tool runtime failures.

    Args:
        message: Human-readable error description.
        details: Optional structured context for diagnosis.
    """

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigParseError(ToolRuntimeError):
    """Raised when persisted configuration cannot be parsed or validated.

    Args:
        tool_name: Tool the failure belongs to; ``None`` for the agent configuration as a whole.
        message: Description of the failure.
    """

    def __init__(self, tool_name: Optional[str], message: str) -> None:
        if tool_name is None:
            super().__init__(f"Invalid agent configuration: {message}")
        else:
            super().__init__(f"Invalid configuration for tool '{tool_name}': {message}")
        self.tool_name = tool_name


class ScriptExecutionFailure(ToolRuntimeError):
    """Raised when a tool script fails to compile or raises while running.

    Args:
        message: Description of the failure.
        phase: ``"compile"`` or ``"runtime"``.
        tool_name: Tool the script belongs to, when known.
    """

    def __init__(self, message: str, *, phase: str, tool_name: Optional[str] = None) -> None:
        super().__init__(message, details={"phase": phase, "tool_name": tool_name})
        self.phase = phase
        self.tool_name = tool_name


class CapabilityUnavailable(ToolRuntimeError):
    def __init__(self, capability: str, method: Optional[str] = None) -> None:
        target = f"{capability}.{method}" if method else capability
        super().__init__(f"Capability not available: '{target}'")
        self.capability = capability
        self.method = method


class SessionProtocolError(ToolRuntimeError):
    """Raised when the remote session handshake is driven out of order or the remote side fails."""


class CredentialInvalid(ToolRuntimeError):
    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class TimeoutDegradation(ToolRuntimeError):
    """Raised (and usually logged only) when a bounded wait exceeds its budget."""

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        super().__init__(f"{operation} exceeded {timeout_seconds:g}s")
        self.operation = operation
        self.timeout_seconds = timeout_seconds
