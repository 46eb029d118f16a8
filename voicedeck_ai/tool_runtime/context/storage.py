"""Scoped key-value storage with time-to-live for tool scripts.

Values are stored JSON-encoded, so a script always reads back a fresh copy
and never shares mutable state with another invocation through storage.
"""

from __future__ import annotations

import json
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from voicedeck_ai.core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StorageStats:
    total_items: int
    valid_items: int
    expired_items: int
    total_size: int


@dataclass(frozen=True)
class _Entry:
    payload: str
    stored_at: float
    expiration_minutes: float

    def expires_at(self) -> float:
        return self.stored_at + self.expiration_minutes * 60

    def expired(self, now: float) -> bool:
        return now > self.expires_at()


class TTLStorage:
    """In-memory TTL store shared by every execution context of a builder.

    Args:
        clock: Returns the current time in seconds (injectable for tests).
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._items: Dict[str, _Entry] = {}
        self._clock = clock

    def set_data(self, key: str, data: Any, expiration_minutes: float) -> None:
        try:
            payload = json.dumps(data)
        except (TypeError, ValueError) as e:
            logger.error("TTLStorage.set_data error for key %s: %s", key, e)
            raise ValueError(f"Failed to store data for key: {key}") from e
        self._items[key] = _Entry(payload=payload, stored_at=self._clock(), expiration_minutes=expiration_minutes)

    def get_data(self, key: str) -> Optional[Any]:
        """Return the stored value, or ``None`` when absent or expired (expired entries are dropped)."""
        entry = self._items.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            self._items.pop(key, None)
            return None
        return json.loads(entry.payload)

    def remove_data(self, key: str) -> None:
        self._items.pop(key, None)

    def has_valid_data(self, key: str) -> bool:
        return self.get_data(key) is not None

    def get_remaining_ttl(self, key: str) -> Optional[int]:
        """Remaining lifetime in whole minutes (rounded up), or ``None`` when absent or expired."""
        entry = self._items.get(key)
        if entry is None:
            return None
        now = self._clock()
        if entry.expired(now):
            self._items.pop(key, None)
            return None
        return math.ceil((entry.expires_at() - now) / 60)

    def clear_expired(self, key_prefix: Optional[str] = None) -> int:
        now = self._clock()
        expired = [
            key
            for key, entry in self._items.items()
            if (key_prefix is None or key.startswith(key_prefix)) and entry.expired(now)
        ]
        for key in expired:
            del self._items[key]
        return len(expired)

    def get_storage_stats(self, key_prefix: Optional[str] = None) -> StorageStats:
        now = self._clock()
        total = valid = expired = size = 0
        for key, entry in self._items.items():
            if key_prefix is not None and not key.startswith(key_prefix):
                continue
            total += 1
            size += len(entry.payload)
            if entry.expired(now):
                expired += 1
            else:
                valid += 1
        return StorageStats(total_items=total, valid_items=valid, expired_items=expired, total_size=size)
