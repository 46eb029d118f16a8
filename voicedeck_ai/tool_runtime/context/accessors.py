"""Capability and authentication accessors exposed to tool scripts.

``CapabilityMap`` is the ``components`` binding: a read-only mapping of
capability name to ``{method name: live callable}``. Its ``get``/``call``
helpers make the "capability absent" branch explicit; ``call`` degrades to a
logged no-op instead of raising.

``AuthAccessors`` is the ``auth`` binding. It resolves credentials and tokens
lazily from the capability reserved under ``"auth"`` and never raises.
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Optional

from voicedeck_ai.core.logging_config import get_logger

from ..capabilities.base import CapabilityRegistration
from ..errors import CapabilityUnavailable

logger = get_logger(__name__)

AUTH_CAPABILITY = "auth"

MethodMap = Mapping[str, Callable[..., Any]]


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class CapabilityMap(Mapping):
    """Read-only view of capability methods keyed by capability name."""

    def __init__(self, registrations: tuple[CapabilityRegistration, ...] = ()) -> None:
        self._methods: Dict[str, MethodMap] = {
            reg.name: MappingProxyType(reg.callables()) for reg in registrations
        }

    def __getitem__(self, name: str) -> MethodMap:
        return self._methods[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    def method(self, name: str, method: str) -> Optional[Callable[..., Any]]:
        methods = self._methods.get(name)
        if methods is None:
            return None
        return methods.get(method)

    async def call(self, name: str, method: str, *args: Any, **kwargs: Any) -> Any:
        """Call ``name.method``; returns ``None`` (and logs) when the capability or method is absent."""
        fn = self.method(name, method)
        if fn is None:
            logger.warning("%s; call skipped", CapabilityUnavailable(name, method))
            return None
        return await maybe_await(fn(*args, **kwargs))


class AuthAccessors:
    """Lazy accessors over the ``auth`` capability."""

    def __init__(self, components: CapabilityMap) -> None:
        self._components = components

    def _invoke(self, method: str) -> Any:
        fn = self._components.method(AUTH_CAPABILITY, method)
        if fn is None:
            return None
        return fn()

    def get_credentials(self) -> Optional[Any]:
        try:
            return self._invoke("get_credentials")
        except Exception as e:
            logger.warning("auth.get_credentials failed: %s", e)
            return None

    async def get_tokens(self) -> Dict[str, Optional[str]]:
        empty: Dict[str, Optional[str]] = {"id_token": None, "access_token": None, "refresh_token": None}
        try:
            tokens = await maybe_await(self._invoke("get_tokens"))
        except Exception as e:
            logger.warning("auth.get_tokens failed: %s", e)
            return empty
        if not isinstance(tokens, Mapping):
            return empty
        return {key: tokens.get(key) for key in empty}

    async def get_jwt(self) -> Optional[str]:
        try:
            return await maybe_await(self._invoke("get_jwt"))
        except Exception as e:
            logger.warning("auth.get_jwt failed: %s", e)
            return None

    def get_user_info(self) -> Optional[Any]:
        try:
            return self._invoke("get_user_info")
        except Exception as e:
            logger.warning("auth.get_user_info failed: %s", e)
            return None
