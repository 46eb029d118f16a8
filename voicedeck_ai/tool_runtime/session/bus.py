from __future__ import annotations

"""Session event bus.

``SessionEventBus`` is a typed publish/subscribe channel between the
application and the remote streaming service. Besides dispatching events to
subscribers it bridges the command events (``createSession``,
``initiateSession``, ``promptStart``, ``systemPrompt``, ``audioStart``,
``audioInput``, ``stopAudio``, ``disconnect``) to the remote client, and
forwards remote output events (content, tool use, stream completion, errors)
back onto the bus.

Handlers run in subscription order and are awaited one after another, so a
publish returns once every handler (including nested publishes) finished.
A handler failure never propagates to the publisher: it is logged and
republished as an ``error`` event.
"""

import asyncio
import base64
import binascii
import functools
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set, Union

from voicedeck_ai.core.logging_config import get_logger

from ..context.accessors import maybe_await
from ..errors import CredentialInvalid, SessionProtocolError, TimeoutDegradation
from ..schemas.domain import SessionState
from .events import (
    BusEvent,
    BusEventType,
    ErrorPayload,
    NoPayload,
    RemotePayload,
    SessionCreated,
    SessionInitiated,
    ToolUse,
)
from .handle import SessionHandle
from .protocols import ClientFactory, CredentialsProvider, StreamingClient, StreamSession

logger = get_logger(__name__)

BusHandler = Callable[[BusEvent], Union[None, Awaitable[None]]]

REMOTE_EVENTS: Dict[str, BusEventType] = {
    "contentStart": BusEventType.content_start,
    "textOutput": BusEventType.text_output,
    "audioOutput": BusEventType.audio_output,
    "contentEnd": BusEventType.content_end,
    "toolUse": BusEventType.tool_use,
    "toolResult": BusEventType.tool_result,
    "streamComplete": BusEventType.stream_complete,
    "error": BusEventType.error,
}


class SessionEventBus:
    """Publish/subscribe bus bridged to one remote streaming session at a time.

    Args:
        client_factory: Builds a streaming client from fresh credentials on every ``createSession``.
        credentials_provider: Returns the currently stored credentials.
        disconnect_timeout: Seconds allowed for graceful teardown on ``disconnect``.
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        credentials_provider: CredentialsProvider,
        *,
        disconnect_timeout: float = 3.0,
    ) -> None:
        self._handlers: Dict[BusEventType, List[BusHandler]] = defaultdict(list)
        self._wildcard_handlers: List[BusHandler] = []
        self._background_tasks: Set[asyncio.Task[Any]] = set()
        self._client_factory = client_factory
        self._credentials_provider = credentials_provider
        self._disconnect_timeout = disconnect_timeout
        self._client: Optional[StreamingClient] = None
        self._handle: Optional[SessionHandle] = None
        self._creating = False

        self.subscribe(BusEventType.create_session, self._on_create_session)
        self.subscribe(BusEventType.initiate_session, self._on_initiate_session)
        self.subscribe(BusEventType.prompt_start, self._on_prompt_start)
        self.subscribe(BusEventType.system_prompt, self._on_system_prompt)
        self.subscribe(BusEventType.audio_start, self._on_audio_start)
        self.subscribe(BusEventType.audio_input, self._on_audio_input)
        self.subscribe(BusEventType.stop_audio, self._on_stop_audio)
        self.subscribe(BusEventType.disconnect, self._on_disconnect)

    @property
    def handle(self) -> Optional[SessionHandle]:
        return self._handle

    @property
    def client(self) -> Optional[StreamingClient]:
        return self._client

    @property
    def disconnect_timeout(self) -> float:
        return self._disconnect_timeout

    @property
    def pending_tasks_count(self) -> int:
        return len(self._background_tasks)

    def subscribe(self, event_type: BusEventType, handler: BusHandler) -> None:
        self._handlers[event_type].append(handler)

    def subscribe_all(self, handler: BusHandler) -> None:
        """Receive every event after its type-specific handlers."""
        self._wildcard_handlers.append(handler)

    def unsubscribe(self, event_type: BusEventType, handler: BusHandler) -> bool:
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def unsubscribe_all(self, handler: BusHandler) -> bool:
        if handler in self._wildcard_handlers:
            self._wildcard_handlers.remove(handler)
            return True
        return False

    async def publish(self, event: BusEvent) -> None:
        logger.debug("Publishing %s", event.type.value)
        handlers = [*self._handlers.get(event.type, ()), *self._wildcard_handlers]
        for handler in handlers:
            try:
                await maybe_await(handler(event))
            except Exception as e:
                logger.error("Handler for %s failed: %s", event.type.value, e)
                if event.type is not BusEventType.error:
                    await self.publish(BusEvent.error(str(e) or type(e).__name__, details=event.type.value))

    async def drain(self) -> None:
        """Wait for forwarded remote events that are still being dispatched."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def aclose(self) -> None:
        await self.publish(BusEvent.simple(BusEventType.disconnect))
        await self.drain()

    def _create_background_task(self, coro: Any) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    # Remote bridge

    def _require_session(self) -> SessionHandle:
        if self._handle is None or self._client is None:
            raise SessionProtocolError("No active session")
        return self._handle

    async def _remote(self, handle: SessionHandle, operation: str, call: Callable[[], Any]) -> Any:
        try:
            return await maybe_await(call())
        except Exception as e:
            handle.fail(f"{operation} failed: {e}")
            raise SessionProtocolError(
                f"{operation} failed: {e}", details={"session_id": handle.session_id}
            ) from e

    async def _on_create_session(self, event: BusEvent) -> None:
        if self._handle is not None and self._handle.is_open:
            raise SessionProtocolError(
                f"Session {self._handle.session_id} is still open; disconnect before creating a new one"
            )
        if self._creating:
            raise SessionProtocolError("A session is already being created")
        credentials = self._credentials_provider()
        if credentials is None or not credentials.access_key_id or not credentials.secret_access_key:
            raise CredentialInvalid("No valid credentials available. Please ensure you are authenticated.")
        if credentials.is_expired():
            raise CredentialInvalid("Stored credentials have expired")

        self._creating = True
        try:
            client = self._client_factory(credentials)
            stream: StreamSession = await maybe_await(client.create_stream_session())
            handle = SessionHandle(session_id=stream.get_session_id(), stream=stream)
            handle.advance(SessionState.created)
            self._client, self._handle = client, handle
        finally:
            self._creating = False
        self._forward_remote_events(stream)
        logger.info("Stream session created: %s", handle.session_id)
        await self.publish(BusEvent(BusEventType.session_created, SessionCreated(session_id=handle.session_id)))

    async def _on_initiate_session(self, event: BusEvent) -> None:
        handle = self._require_session()
        payload = event.payload
        if payload.session_id != handle.session_id:
            raise SessionProtocolError(
                f"Cannot initiate session {payload.session_id}; active session is {handle.session_id}"
            )
        handle.require(SessionState.created)
        client = self._client

        for tool in payload.tools:
            if tool.name in handle.registered_tools:
                logger.warning("Tool %s already registered for session %s", tool.name, handle.session_id)
                continue
            try:
                await maybe_await(client.set_tool(tool.name, tool.definition, tool.action))
                handle.registered_tools.append(tool.name)
                logger.info("Registered tool: %s", tool.name)
            except Exception as e:
                logger.error("Failed to register tool %s: %s", tool.name, e)
        handle.advance(SessionState.tools_registered)

        await self._remote(handle, "initiate_session", lambda: client.initiate_session(handle.session_id))
        handle.advance(SessionState.initiated)
        logger.info("Session initiated: %s with %d tools", handle.session_id, len(handle.registered_tools))
        await self.publish(
            BusEvent(BusEventType.session_initiated, SessionInitiated(session_id=handle.session_id))
        )

    async def _on_prompt_start(self, event: BusEvent) -> None:
        handle = self._require_session()
        handle.require(SessionState.initiated)
        if handle.prompt_started:
            raise SessionProtocolError(f"Prompt already started for session {handle.session_id}")
        await self._remote(handle, "setup_prompt_start", handle.stream.setup_prompt_start)
        handle.prompt_started = True

    async def _on_system_prompt(self, event: BusEvent) -> None:
        handle = self._require_session()
        handle.require(SessionState.initiated)
        if not handle.prompt_started:
            raise SessionProtocolError("Prompt start must precede the system prompt")
        text = event.payload.text
        await self._remote(handle, "setup_system_prompt", lambda: handle.stream.setup_system_prompt(None, text))
        handle.advance(SessionState.prompt_configured)

    async def _on_audio_start(self, event: BusEvent) -> None:
        handle = self._require_session()
        handle.require(SessionState.prompt_configured)
        await self._remote(handle, "setup_start_audio", handle.stream.setup_start_audio)
        handle.advance(SessionState.audio_ready)

    async def _on_audio_input(self, event: BusEvent) -> None:
        handle = self._require_session()
        handle.require(SessionState.audio_ready, SessionState.streaming)
        try:
            audio = base64.b64decode(event.payload.base64_pcm, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SessionProtocolError(f"Invalid base64 audio chunk: {e}") from e
        if handle.state is SessionState.audio_ready:
            handle.advance(SessionState.streaming)
        await self._remote(handle, "stream_audio", lambda: handle.stream.stream_audio(audio))

    async def _on_stop_audio(self, event: BusEvent) -> None:
        handle, client = self._handle, self._client
        if handle is None or client is None or not handle.can_advance(SessionState.closing):
            logger.error("No active session to stop")
            return
        handle.advance(SessionState.closing)
        try:
            await self._close_stream(handle.stream)
        except Exception as e:
            logger.error("Error stopping audio for session %s: %s", handle.session_id, e)
            await self._force_close(client, handle)
            self._clear()
            raise SessionProtocolError(f"Failed to stop audio session: {e}") from e
        handle.advance(SessionState.closed)
        logger.info("Session %s closed", handle.session_id)
        self._clear()

    async def _on_disconnect(self, event: BusEvent) -> None:
        handle, client = self._handle, self._client
        if handle is None or client is None:
            self._clear()
            return
        if handle.can_advance(SessionState.closing):
            handle.advance(SessionState.closing)
        try:
            await asyncio.wait_for(self._close_if_active(client, handle), timeout=self._disconnect_timeout)
        except asyncio.TimeoutError:
            logger.warning("%s; forcing close", TimeoutDegradation("session cleanup", self._disconnect_timeout))
            await self._force_close(client, handle)
        except Exception as e:
            logger.error("Error during session cleanup: %s", e)
            await self._force_close(client, handle)
        finally:
            if handle.can_advance(SessionState.closed):
                handle.advance(SessionState.closed)
            self._clear()
        logger.info("Disconnected session %s", handle.session_id)

    async def _close_if_active(self, client: StreamingClient, handle: SessionHandle) -> None:
        if await maybe_await(client.is_session_active(handle.session_id)):
            await self._close_stream(handle.stream)

    async def _close_stream(self, stream: StreamSession) -> None:
        await maybe_await(stream.end_audio_content())
        await maybe_await(stream.end_prompt())
        await maybe_await(stream.close())

    async def _force_close(self, client: StreamingClient, handle: SessionHandle) -> None:
        try:
            await maybe_await(client.force_close_session(handle.session_id))
        except Exception as e:
            logger.error("Error force closing session %s: %s", handle.session_id, e)

    def _clear(self) -> None:
        self._handle = None
        self._client = None

    def _forward_remote_events(self, stream: StreamSession) -> None:
        for name, event_type in REMOTE_EVENTS.items():
            stream.on_event(name, functools.partial(self._on_remote_event, event_type))

    def _on_remote_event(self, event_type: BusEventType, data: Any) -> asyncio.Task[Any]:
        return self._create_background_task(self.publish(self._remote_bus_event(event_type, data)))

    @staticmethod
    def _remote_bus_event(event_type: BusEventType, data: Any) -> BusEvent:
        body: Dict[str, Any] = dict(data) if isinstance(data, Mapping) else {"content": data}
        if event_type is BusEventType.tool_use:
            return BusEvent(event_type, ToolUse(tool_name=str(body.get("toolName", "")), data=body))
        if event_type is BusEventType.error:
            message = body.get("message") or str(body.get("content", "Remote session error"))
            details = body.get("details")
            return BusEvent(event_type, ErrorPayload(message=message, details=None if details is None else str(details)))
        if event_type is BusEventType.stream_complete:
            return BusEvent(event_type, NoPayload())
        return BusEvent(event_type, RemotePayload(data=body))
