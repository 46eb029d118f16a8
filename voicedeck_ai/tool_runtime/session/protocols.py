"""Contracts of the remote streaming-service wrapper.

Remote calls may be synchronous or return awaitables; the bus awaits
whatever they return.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from ..schemas.domain import Credentials

RemoteEventHandler = Callable[[Any], Any]


@runtime_checkable
class StreamSession(Protocol):
    def get_session_id(self) -> str: ...

    def on_event(self, name: str, handler: RemoteEventHandler) -> Any: ...

    def stream_audio(self, audio: bytes) -> Any: ...

    def setup_prompt_start(self) -> Any: ...

    def setup_system_prompt(self, text_config: Optional[Dict[str, Any]], text: str) -> Any: ...

    def setup_start_audio(self) -> Any: ...

    def end_audio_content(self) -> Any: ...

    def end_prompt(self) -> Any: ...

    def close(self) -> Any: ...


@runtime_checkable
class StreamingClient(Protocol):
    def create_stream_session(self) -> StreamSession: ...

    def set_tool(self, name: str, definition: Dict[str, Any], action: Callable[..., Any]) -> Any: ...

    def initiate_session(self, session_id: str) -> Any: ...

    def is_session_active(self, session_id: str) -> bool: ...

    def force_close_session(self, session_id: str) -> Any: ...

    def get_registered_tool_names(self) -> List[str]: ...


ClientFactory = Callable[[Credentials], StreamingClient]
CredentialsProvider = Callable[[], Optional[Credentials]]
