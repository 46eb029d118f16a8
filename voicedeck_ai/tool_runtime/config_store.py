"""Configuration store contract and an in-memory implementation.

The persisted storage format is owned by the host application. The runtime
only needs the agent configuration (system prompt, global parameters, tool
catalog) and the credential/identity-session state.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from voicedeck_ai.core.logging_config import get_logger

from .catalog.definitions import reorder_tools, validate_tools
from .catalog.parameters import reorder_parameters, validate_parameters
from .errors import ConfigParseError
from .schemas.domain import AgentConfig, Credentials

logger = get_logger(__name__)


@runtime_checkable
class ConfigStore(Protocol):
    """Read access to agent configuration and credentials.

    ``is_session_valid`` may be sync or async.
    """

    def get_agent_config(self) -> AgentConfig: ...

    def get_credentials(self) -> Optional[Credentials]: ...

    def is_session_valid(self) -> Any: ...


class InMemoryConfigStore:
    """Process-local ``ConfigStore`` used for wiring and tests.

    ``save_agent_config`` validates the catalog and global parameters and
    re-densifies their ``order`` fields before storing.
    """

    def __init__(
        self,
        agent_config: Optional[AgentConfig] = None,
        credentials: Optional[Credentials] = None,
        *,
        session_valid: bool = True,
    ) -> None:
        self._agent_config = agent_config or AgentConfig()
        self._credentials = credentials
        self._session_valid = session_valid

    def get_agent_config(self) -> AgentConfig:
        return self._agent_config

    def save_agent_config(self, agent_config: AgentConfig) -> AgentConfig:
        errors = validate_tools(agent_config.tools) + validate_parameters(agent_config.global_parameters)
        if errors:
            raise ConfigParseError(None, "; ".join(errors))
        self._agent_config = agent_config.model_copy(
            update={
                "tools": reorder_tools(agent_config.tools),
                "global_parameters": reorder_parameters(agent_config.global_parameters),
            }
        )
        logger.info(
            "Saved agent configuration: %d tools, %d global parameters",
            len(self._agent_config.tools),
            len(self._agent_config.global_parameters),
        )
        return self._agent_config

    def reset_agent_config(self) -> None:
        self._agent_config = AgentConfig()

    def get_credentials(self) -> Optional[Credentials]:
        return self._credentials

    def save_credentials(self, credentials: Credentials) -> None:
        self._credentials = credentials

    def clear_credentials(self) -> None:
        self._credentials = None

    def set_session_valid(self, valid: bool) -> None:
        self._session_valid = valid

    def is_session_valid(self) -> bool:
        return self._session_valid
