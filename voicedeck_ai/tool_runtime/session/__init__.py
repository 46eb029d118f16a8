"""Remote session bus and lifecycle coordination.

This package exports:

- ``SessionEventBus``: typed publish/subscribe bridged to the remote streaming client.
- ``BusEvent``/``BusEventType`` and the payload classes.
- ``SessionHandle``: explicit state of the active remote session.
- ``CredentialValidator``: the credential gate for initialization tools.
- ``SessionLifecycleCoordinator``: readiness, initialization tools and the handshake.
"""

from .bus import SessionEventBus
from .coordinator import InitResult, SessionLifecycleCoordinator, Status
from .credentials import CredentialCheck, CredentialValidator
from .events import (
    AudioInput,
    BusEvent,
    BusEventType,
    ErrorPayload,
    InitiateSession,
    NoPayload,
    RemotePayload,
    SessionCreated,
    SessionInitiated,
    SystemPrompt,
    ToolUse,
)
from .handle import SessionHandle
from .protocols import ClientFactory, StreamingClient, StreamSession

__all__ = [
    "SessionEventBus",
    "InitResult",
    "SessionLifecycleCoordinator",
    "Status",
    "CredentialCheck",
    "CredentialValidator",
    "AudioInput",
    "BusEvent",
    "BusEventType",
    "ErrorPayload",
    "InitiateSession",
    "NoPayload",
    "RemotePayload",
    "SessionCreated",
    "SessionInitiated",
    "SystemPrompt",
    "ToolUse",
    "SessionHandle",
    "ClientFactory",
    "StreamingClient",
    "StreamSession",
]
