"""Credential gate for initialization tools."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from voicedeck_ai.core.logging_config import get_logger

from ..context.accessors import maybe_await

if TYPE_CHECKING:
    from ..config_store import ConfigStore

logger = get_logger(__name__)

NO_CREDENTIALS = "No credentials found in session storage"
CREDENTIALS_EXPIRED = "Stored credentials have expired"
NO_AUTH_SESSION = "No valid auth session available"
VALID_SESSION = "Valid session confirmed"


@dataclass(frozen=True)
class CredentialCheck:
    is_valid: bool
    reason: str


class CredentialValidator:
    """Check that stored credentials exist, are unexpired and back a valid identity session.

    Never raises; failures become an invalid check with the reason recorded.
    """

    def __init__(
        self,
        config_store: "ConfigStore",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._config_store = config_store
        self._clock = clock

    async def validate(self) -> CredentialCheck:
        try:
            credentials = self._config_store.get_credentials()
            if credentials is None:
                return CredentialCheck(False, NO_CREDENTIALS)
            if credentials.is_expired(self._clock()):
                return CredentialCheck(False, CREDENTIALS_EXPIRED)
            if not await maybe_await(self._config_store.is_session_valid()):
                return CredentialCheck(False, NO_AUTH_SESSION)
        except Exception as e:
            logger.info("Session validation failed: %s", e)
            return CredentialCheck(False, f"Session validation error: {e}")
        logger.info("Valid identity session confirmed for tool execution")
        return CredentialCheck(True, VALID_SESSION)
