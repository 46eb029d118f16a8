from __future__ import annotations

"""Capability registry.

The registry maps a capability name to the registration published by the UI
piece that owns it. Pieces mount asynchronously and out of order, so the
registry also offers bounded readiness polling for an expected name set.
"""

import asyncio
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from voicedeck_ai.core.logging_config import get_logger

from .base import CapabilityRegistration

logger = get_logger(__name__)

RegistryListener = Callable[["CapabilityRegistry"], None]


class CapabilityRegistry:
    """
    In-memory mapping of capability names to registrations.

    Notes:
        - ``register`` overwrites any existing registration for the name (last writer wins).
        - ``unregister`` is idempotent.
        - ``get`` returns ``None`` for absent names; callers handle the absent branch explicitly.
        - Listeners run after every mutation so execution contexts can be rebuilt.
    """

    def __init__(self) -> None:
        """Initialize an empty capability registry."""
        self._caps: Dict[str, CapabilityRegistration] = {}
        self._listeners: List[RegistryListener] = []

    def register(self, registration: CapabilityRegistration) -> None:
        """
        Register (or replace) a capability.

        Args:
            registration: The registration to publish under ``registration.name``.
        """
        replaced = registration.name in self._caps
        self._caps[registration.name] = registration
        logger.info(
            "Registered capability '%s' (%d methods%s)",
            registration.name,
            len(registration.methods),
            ", replaced previous" if replaced else "",
        )
        self._notify()

    def unregister(self, name: str) -> bool:
        """
        Remove a capability; a no-op when it is not registered.

        Returns:
            True if a registration was removed, False otherwise.
        """
        if self._caps.pop(name, None) is None:
            logger.debug("Unregister of unknown capability '%s' ignored", name)
            return False
        logger.info("Unregistered capability '%s'", name)
        self._notify()
        return True

    def get(self, name: str) -> Optional[CapabilityRegistration]:
        return self._caps.get(name)

    def has(self, name: str) -> bool:
        return name in self._caps

    def names(self) -> List[str]:
        return list(self._caps)

    def list(self) -> Tuple[CapabilityRegistration, ...]:
        """Return a snapshot of the current registrations."""
        return tuple(self._caps.values())

    def missing(self, expected: Iterable[str]) -> List[str]:
        return [name for name in expected if name not in self._caps]

    def is_ready(self, expected: Iterable[str]) -> bool:
        """Check whether every expected capability is registered."""
        return not self.missing(expected)

    async def wait_ready(self, expected: Iterable[str], *, poll_ms: int = 100, max_attempts: int = 50) -> bool:
        """
        Wait until every expected capability is registered.

        The wait is bounded: after ``max_attempts`` polls it resolves anyway and
        logs the names that never showed up. It never raises.

        Args:
            expected: Capability names to wait for.
            poll_ms: Interval between polls in milliseconds.
            max_attempts: Number of polls before giving up.

        Returns:
            True when ready, False when the wait degraded after the attempt budget.
        """
        expected = list(expected)
        if self.is_ready(expected):
            logger.info("All capabilities are ready for tool execution")
            return True

        logger.info("Waiting for capabilities: expected=%s registered=%s", expected, self.names())
        started = time.monotonic()
        for _attempt in range(max(max_attempts, 0)):
            await asyncio.sleep(poll_ms / 1000)
            if self.is_ready(expected):
                logger.info("All capabilities are now ready (%.2fs)", time.monotonic() - started)
                return True

        logger.warning(
            "Timeout waiting for capabilities after %.2fs; proceeding anyway. Missing: %s",
            time.monotonic() - started,
            self.missing(expected),
        )
        return False

    def add_listener(self, listener: RegistryListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: RegistryListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def describe(self) -> Dict[str, Any]:
        """Documentation view of every registered capability and its methods."""
        return {name: reg.describe() for name, reg in self._caps.items()}

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Capability registry listener failed")
