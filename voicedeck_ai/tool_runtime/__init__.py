"""Dynamic tool runtime for the voice assistant.

Design overview
---------------

Tools are defined as data (name, description, input schema, script body) in
the agent configuration and executed on request of the remote speech model:

- ``capabilities``: UI pieces publish named method bundles into a
  ``CapabilityRegistry``; tool scripts can only reach the host through them.
- ``context``: ``ExecutionContextBuilder`` turns the registry snapshot into
  the binding set a script sees (``http``, ``components``, ``utils``,
  ``auth``, ``globals``, ``runtime``).
- ``sandbox``: ``ScriptCompiler`` compiles a script body into an async
  ``execute(params)`` entry point with an explicit binding allow-list.
- ``catalog``: ``ToolCatalogLoader`` builds executable tools from the
  catalog and runs the initialization tools.
- ``session``: ``SessionEventBus`` and ``SessionLifecycleCoordinator`` drive
  the remote session handshake and teardown.

Typical usage
-------------

1. Register capabilities as UI pieces mount.
2. Create a ``SessionLifecycleCoordinator`` with a config store and a
   streaming client factory.
3. Call ``on_authenticated()`` once the user signs in.
4. Call ``start_session()`` and feed audio with ``send_audio()``.
"""

from .capabilities import CapabilityRegistration, CapabilityRegistry, describe_method
from .catalog import GlobalParameterStore, ProcessedTool, ToolCatalogLoader
from .config_store import ConfigStore, InMemoryConfigStore
from .context import ExecutionContext, ExecutionContextBuilder
from .errors import (
    CapabilityUnavailable,
    ConfigParseError,
    CredentialInvalid,
    ScriptExecutionFailure,
    SessionProtocolError,
    TimeoutDegradation,
    ToolRuntimeError,
)
from .sandbox import CompiledScript, ScriptCompiler
from .session import SessionEventBus, SessionLifecycleCoordinator

__all__ = [
    "CapabilityRegistration",
    "CapabilityRegistry",
    "describe_method",
    "GlobalParameterStore",
    "ProcessedTool",
    "ToolCatalogLoader",
    "ConfigStore",
    "InMemoryConfigStore",
    "ExecutionContext",
    "ExecutionContextBuilder",
    "CapabilityUnavailable",
    "ConfigParseError",
    "CredentialInvalid",
    "ScriptExecutionFailure",
    "SessionProtocolError",
    "TimeoutDegradation",
    "ToolRuntimeError",
    "CompiledScript",
    "ScriptCompiler",
    "SessionEventBus",
    "SessionLifecycleCoordinator",
]
