from __future__ import annotations

"""Execution context construction.

``ExecutionContextBuilder`` assembles the bounded binding set visible to a
running tool script from the current capability registry snapshot:

- ``http``: shared ``httpx.AsyncClient`` owned by the builder,
- ``components``: live capability methods,
- ``utils``: id/date/json/sleep helpers plus TTL storage,
- ``auth``: lazy accessors over the ``auth`` capability,
- ``globals``: resolved global parameters,
- ``runtime``: host runtime handle for advanced scripts.

Building is pure and cheap; it is repeated on every capability-set change.
Nothing in the context is copied from providers, so calls observe the
providers' current state.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from types import MappingProxyType, ModuleType
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from voicedeck_ai.core.config import Settings, settings as default_settings
from voicedeck_ai.core.logging_config import get_logger

from ..capabilities.registry import CapabilityRegistry
from .accessors import AuthAccessors, CapabilityMap
from .storage import TTLStorage
from .utilities import UtilityBundle

logger = get_logger(__name__)

GlobalsProvider = Callable[[], Mapping[str, str]]


@dataclass(frozen=True)
class RuntimeHandle:
    """Handle to the host runtime for advanced scripts."""

    registry: CapabilityRegistry
    asyncio: ModuleType = asyncio

    def loop(self) -> asyncio.AbstractEventLoop:
        return asyncio.get_running_loop()


@dataclass(frozen=True)
class ExecutionContext:
    http: Optional[httpx.AsyncClient]
    components: CapabilityMap
    utils: UtilityBundle
    auth: AuthAccessors
    runtime: RuntimeHandle
    globals: Mapping[str, str] = field(default_factory=dict)

    def as_bindings(self) -> Dict[str, Any]:
        """Return the context as script bindings."""
        return {
            "http": self.http,
            "components": self.components,
            "utils": self.utils,
            "auth": self.auth,
            "runtime": self.runtime,
            "globals": self.globals,
        }


class ExecutionContextBuilder:
    """Build ``ExecutionContext`` objects from a capability registry.

    Args:
        registry: Registry whose snapshot provides the ``components`` binding.
        globals_provider: Returns the flat global-parameter map at build time.
        http_client: Client exposed as ``http``; created lazily when omitted.
        storage: TTL storage shared across rebuilds.
        settings: Runtime settings (HTTP timeout, device id).
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        *,
        globals_provider: Optional[GlobalsProvider] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        storage: Optional[TTLStorage] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._registry = registry
        self._globals_provider = globals_provider
        self._settings = settings or default_settings
        self._http = http_client
        self._owns_http = http_client is None
        self._storage = storage or TTLStorage()
        self._device_id = self._settings.device_id or f"device_{uuid.uuid4().hex}"

    @property
    def storage(self) -> TTLStorage:
        return self._storage

    def _http_client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=self._settings.http_timeout_seconds,
                headers={"Content-Type": "application/json"},
            )
        return self._http

    def build(self) -> ExecutionContext:
        """Build a context from the registry's current snapshot."""
        components = CapabilityMap(self._registry.list())
        global_values: Mapping[str, str] = {}
        if self._globals_provider is not None:
            try:
                global_values = MappingProxyType(dict(self._globals_provider()))
            except Exception:
                logger.exception("Failed to resolve global parameters for execution context")
        context = ExecutionContext(
            http=self._http_client(),
            components=components,
            utils=UtilityBundle(device_id=self._device_id, storage=self._storage),
            auth=AuthAccessors(components),
            runtime=RuntimeHandle(registry=self._registry),
            globals=global_values,
        )
        logger.debug("Built execution context with components: %s", list(components))
        return context

    async def aclose(self) -> None:
        """Close the HTTP client if this builder created it."""
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None
