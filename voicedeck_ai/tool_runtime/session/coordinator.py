from __future__ import annotations

"""Session lifecycle coordination.

``SessionLifecycleCoordinator`` owns the application-level sequence around
the tool runtime:

1. keep the execution context current (rebuilt on every capability change),
2. after authentication, wait for the expected capabilities, check the
   credential gate and run the initialization tools in order,
3. drive the remote session handshake on the event bus
   (create -> register tools -> initiate -> prompt -> system prompt -> audio),
4. stream audio, stop and disconnect.

It also exposes a user-facing status ``(text, kind)`` with
``kind`` one of ``connecting``, ``processing``, ``ready``, ``warning`` and ``error``.
"""

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional

from voicedeck_ai.core.config import Settings, settings as default_settings
from voicedeck_ai.core.logging_config import get_logger

from ..capabilities.registry import CapabilityRegistry
from ..catalog.loader import ToolCatalogLoader
from ..catalog.parameters import GlobalParameterStore
from ..context.builder import ExecutionContext, ExecutionContextBuilder
from ..schemas.domain import SessionState
from .bus import SessionEventBus
from .credentials import CredentialValidator
from .events import AudioInput, BusEvent, BusEventType, InitiateSession, SystemPrompt
from .handle import SessionHandle
from .protocols import ClientFactory

if TYPE_CHECKING:
    from ..config_store import ConfigStore

logger = get_logger(__name__)

NO_INIT_TOOLS = "No tools configured"
INIT_TOOLS_COMPLETED = "All tools completed successfully"


@dataclass(frozen=True)
class InitResult:
    executed: bool
    reason: str


@dataclass(frozen=True)
class Status:
    text: str
    kind: str = "connecting"


class SessionLifecycleCoordinator:
    """Tie the registry, catalog loader, credential gate and event bus together.

    Args:
        registry: Capability registry observed for readiness and context rebuilds.
        config_store: Agent configuration and credential source.
        client_factory: Builds the remote streaming client from credentials.
        settings: Readiness polling, settle delays and disconnect timeout.
        bus: Event bus; one bridged to ``client_factory`` is created when omitted.
        context_builder: Execution context builder; created over ``registry`` when omitted.
        loader: Tool catalog loader; created over ``config_store`` when omitted.
        credential_validator: Credential gate; created over ``config_store`` when omitted.
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        config_store: "ConfigStore",
        client_factory: ClientFactory,
        *,
        settings: Optional[Settings] = None,
        bus: Optional[SessionEventBus] = None,
        context_builder: Optional[ExecutionContextBuilder] = None,
        loader: Optional[ToolCatalogLoader] = None,
        credential_validator: Optional[CredentialValidator] = None,
    ) -> None:
        self._settings = settings or default_settings
        self._timing = self._settings.session_timing
        self._registry = registry
        self._config_store = config_store
        self._parameters = GlobalParameterStore(config_store)
        self._bus = bus or SessionEventBus(
            client_factory,
            config_store.get_credentials,
            disconnect_timeout=self._timing.disconnect_timeout_seconds,
        )
        self._context_builder = context_builder or ExecutionContextBuilder(
            registry, globals_provider=self._parameters.resolve, settings=self._settings
        )
        self._loader = loader or ToolCatalogLoader(
            config_store, self.current_context, parameter_store=self._parameters
        )
        self._credentials = credential_validator or CredentialValidator(config_store)

        self._context: Optional[ExecutionContext] = None
        self._authenticated = False
        self._session_initialized = False
        self.pending_init_reason: Optional[str] = None
        self._status = Status("Initializing...", "connecting")
        self._status_listeners: List[Callable[[Status], None]] = []
        self._start_lock = asyncio.Lock()

        self._registry.add_listener(self._on_registry_changed)

    @property
    def bus(self) -> SessionEventBus:
        return self._bus

    @property
    def loader(self) -> ToolCatalogLoader:
        return self._loader

    @property
    def handle(self) -> Optional[SessionHandle]:
        return self._bus.handle

    @property
    def status(self) -> Status:
        return self._status

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    def add_status_listener(self, listener: Callable[[Status], None]) -> None:
        self._status_listeners.append(listener)

    def _set_status(self, text: str, kind: str) -> None:
        self._status = Status(text, kind)
        for listener in list(self._status_listeners):
            try:
                listener(self._status)
            except Exception:
                logger.exception("Status listener failed")

    # Execution context

    def current_context(self) -> ExecutionContext:
        if self._context is None:
            self._context = self._context_builder.build()
        return self._context

    def refresh_context(self) -> ExecutionContext:
        self._context = self._context_builder.build()
        logger.debug("Execution context refreshed with components: %s", list(self._context.components))
        return self._context

    def _on_registry_changed(self, registry: CapabilityRegistry) -> None:
        self.refresh_context()

    # Initialization tools

    async def run_initialization_tools(self) -> InitResult:
        """Wait for readiness, check credentials and run the ``run_after_init`` tools in order.

        Returns an ``InitResult`` whose ``reason`` explains a skip. A skipped run
        is remembered in ``pending_init_reason`` so a later authentication retries it.
        """
        readiness = self._settings.readiness
        await self._registry.wait_ready(
            readiness.expected_capabilities, poll_ms=readiness.poll_ms, max_attempts=readiness.max_attempts
        )
        self.refresh_context()

        check = await self._credentials.validate()
        if not check.is_valid:
            logger.info("Skipping initialization tools - %s", check.reason)
            self.pending_init_reason = check.reason
            return InitResult(False, check.reason)

        init_tools = self._loader.filter_init_tools()
        self.pending_init_reason = None
        if not init_tools:
            logger.info("No initialization tools to run")
            return InitResult(True, NO_INIT_TOOLS)

        logger.info("Running %d initialization tools", len(init_tools))
        await self._loader.run_init_tools(init_tools)
        logger.info("All initialization tools completed")
        return InitResult(True, INIT_TOOLS_COMPLETED)

    async def on_authenticated(self) -> Optional[InitResult]:
        """Handle a successful sign-in; runs at most once until ``on_signed_out``."""
        if self._authenticated:
            logger.debug("Authentication already handled, ignoring")
            return None
        self._authenticated = True
        if self.pending_init_reason:
            logger.info("Retrying initialization tools skipped earlier: %s", self.pending_init_reason)
        self._set_status("Authenticated - preparing tools...", "processing")
        await asyncio.sleep(self._timing.post_auth_settle_ms / 1000)

        result = await self.run_initialization_tools()
        if result.executed:
            self._set_status("Ready", "ready")
        else:
            self._set_status(f"Initialization tools skipped: {result.reason}", "warning")
        return result

    async def on_signed_out(self) -> None:
        self._authenticated = False
        if self._bus.handle is not None:
            await self.disconnect()
        self._set_status("Signed out", "connecting")

    async def refresh_configuration(self) -> InitResult:
        """Re-run the initialization tools after the agent configuration changed."""
        self._set_status("Applying configuration...", "processing")
        self.refresh_context()
        await asyncio.sleep(self._timing.post_refresh_settle_ms / 1000)
        result = await self.run_initialization_tools()
        if result.executed:
            self._set_status("Configuration applied", "ready")
        else:
            self._set_status(f"Configuration saved; initialization tools skipped: {result.reason}", "warning")
        return result

    # Remote session

    async def start_session(self) -> Optional[SessionHandle]:
        """Run the full handshake; returns the audio-ready handle or ``None`` on failure.

        Concurrent callers are serialized; a caller that waited gets the session the first one opened.
        """
        async with self._start_lock:
            return await self._start_session()

    async def _start_session(self) -> Optional[SessionHandle]:
        handle = self._bus.handle
        if self._session_initialized and handle is not None and handle.is_open:
            return handle

        self._set_status("Connecting to assistant...", "connecting")
        errors: List[str] = []

        def record_error(event: BusEvent) -> None:
            errors.append(event.payload.message)

        self._bus.subscribe(BusEventType.error, record_error)
        self._bus.subscribe(BusEventType.session_created, self._on_session_created)
        self._bus.subscribe(BusEventType.session_initiated, self._on_session_initiated)
        try:
            await self._bus.publish(BusEvent.simple(BusEventType.create_session))
        finally:
            self._bus.unsubscribe(BusEventType.error, record_error)
            self._bus.unsubscribe(BusEventType.session_created, self._on_session_created)
            self._bus.unsubscribe(BusEventType.session_initiated, self._on_session_initiated)

        handle = self._bus.handle
        if handle is None or handle.state is not SessionState.audio_ready:
            message = errors[0] if errors else "Session handshake did not complete"
            logger.error("Failed to start session: %s", message)
            self._set_status(f"Error: {message}", "error")
            return None

        self._session_initialized = True
        self._set_status("Ready - start speaking", "ready")
        return handle

    async def _on_session_created(self, event: BusEvent) -> None:
        tools = self._loader.load_tools()
        await self._bus.publish(
            BusEvent(
                BusEventType.initiate_session,
                InitiateSession(session_id=event.payload.session_id, tools=tuple(tools)),
            )
        )

    async def _on_session_initiated(self, event: BusEvent) -> None:
        system_prompt = self._config_store.get_agent_config().system_prompt
        steps = (
            BusEvent.simple(BusEventType.prompt_start),
            BusEvent(BusEventType.system_prompt, SystemPrompt(text=system_prompt)),
            BusEvent.simple(BusEventType.audio_start),
        )
        for step in steps:
            await self._bus.publish(step)
            handle = self._bus.handle
            if handle is None or handle.state is SessionState.error:
                logger.error("Session setup stopped at %s", step.type.value)
                return

    async def send_audio(self, base64_pcm: str) -> None:
        await self._bus.publish(BusEvent(BusEventType.audio_input, AudioInput(base64_pcm=base64_pcm)))

    async def stop_session(self) -> None:
        await self._bus.publish(BusEvent.simple(BusEventType.stop_audio))
        self._session_initialized = False
        self._set_status("Session stopped", "connecting")

    async def disconnect(self) -> None:
        await self._bus.publish(BusEvent.simple(BusEventType.disconnect))
        self._session_initialized = False

    async def aclose(self) -> None:
        self._registry.remove_listener(self._on_registry_changed)
        await self._bus.aclose()
        self._session_initialized = False
        await self._context_builder.aclose()
