from __future__ import annotations

"""Typed session bus events.

The bus carries a closed set of event types (``BusEventType``); each type
has exactly one payload class, checked when a ``BusEvent`` is constructed.
Event values keep the remote protocol's event names.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..catalog.loader import ProcessedTool


class BusEventType(str, Enum):
    create_session = "createSession"
    session_created = "sessionCreated"
    initiate_session = "initiateSession"
    session_initiated = "sessionInitiated"
    prompt_start = "promptStart"
    system_prompt = "systemPrompt"
    audio_start = "audioStart"
    audio_input = "audioInput"
    stop_audio = "stopAudio"
    disconnect = "disconnect"
    error = "error"
    tool_use = "toolUse"
    tool_result = "toolResult"
    content_start = "contentStart"
    text_output = "textOutput"
    audio_output = "audioOutput"
    content_end = "contentEnd"
    stream_complete = "streamComplete"


@dataclass(frozen=True)
class NoPayload:
    pass


@dataclass(frozen=True)
class SessionCreated:
    session_id: str


@dataclass(frozen=True)
class InitiateSession:
    session_id: str
    tools: Tuple[ProcessedTool, ...] = ()


@dataclass(frozen=True)
class SessionInitiated:
    session_id: str


@dataclass(frozen=True)
class SystemPrompt:
    text: str


@dataclass(frozen=True)
class AudioInput:
    base64_pcm: str


@dataclass(frozen=True)
class ErrorPayload:
    message: str
    details: Optional[str] = None


@dataclass(frozen=True)
class ToolUse:
    tool_name: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemotePayload:
    """Content/tool-result events forwarded from the remote session."""

    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def role(self) -> Optional[str]:
        return self.data.get("role")

    @property
    def type(self) -> Optional[str]:
        return self.data.get("type")

    @property
    def content(self) -> Any:
        return self.data.get("content")

    @property
    def stop_reason(self) -> Optional[str]:
        return self.data.get("stopReason")


PAYLOAD_TYPES: Dict[BusEventType, type] = {
    BusEventType.create_session: NoPayload,
    BusEventType.session_created: SessionCreated,
    BusEventType.initiate_session: InitiateSession,
    BusEventType.session_initiated: SessionInitiated,
    BusEventType.prompt_start: NoPayload,
    BusEventType.system_prompt: SystemPrompt,
    BusEventType.audio_start: NoPayload,
    BusEventType.audio_input: AudioInput,
    BusEventType.stop_audio: NoPayload,
    BusEventType.disconnect: NoPayload,
    BusEventType.error: ErrorPayload,
    BusEventType.tool_use: ToolUse,
    BusEventType.tool_result: RemotePayload,
    BusEventType.content_start: RemotePayload,
    BusEventType.text_output: RemotePayload,
    BusEventType.audio_output: RemotePayload,
    BusEventType.content_end: RemotePayload,
    BusEventType.stream_complete: NoPayload,
}


@dataclass(frozen=True)
class BusEvent:
    type: BusEventType
    payload: Any = field(default_factory=NoPayload)

    def __post_init__(self) -> None:
        expected = PAYLOAD_TYPES[self.type]
        if not isinstance(self.payload, expected):
            raise TypeError(
                f"{self.type.value} event requires a {expected.__name__} payload, got {type(self.payload).__name__}"
            )

    @classmethod
    def error(cls, message: str, details: Optional[str] = None) -> "BusEvent":
        return cls(BusEventType.error, ErrorPayload(message=message, details=details))

    @classmethod
    def simple(cls, event_type: BusEventType) -> "BusEvent":
        return cls(event_type, NoPayload())
