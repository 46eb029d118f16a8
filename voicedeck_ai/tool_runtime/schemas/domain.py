from __future__ import annotations

"""Domain models of the tool runtime.

Persisted values (tool catalog, global parameters, agent configuration,
credentials) are pydantic models; unknown fields are rejected so a stale or
misspelled configuration entry fails loudly at load time.
"""

import random
import string
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SYSTEM_PROMPT = (
    "You are a friend. The user and you will engage in a spoken dialog exchanging the transcripts "
    "of a natural real-time conversation. Keep your responses short, generally two or three "
    "sentences for chatty scenarios."
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_parameter_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"param_{int(time.time() * 1000)}_{suffix}"


class BaseSchema(BaseModel):
    """Shared base: construct by field name or alias, reject unknown fields."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class SessionState(str, Enum):
    uninitialized = "uninitialized"
    created = "created"
    tools_registered = "tools_registered"
    initiated = "initiated"
    prompt_configured = "prompt_configured"
    audio_ready = "audio_ready"
    streaming = "streaming"
    closing = "closing"
    closed = "closed"
    error = "error"


class ToolDefinition(BaseSchema):
    """
    Persisted, operator-authored tool.

    ``input_schema_text`` and ``script_text`` are kept as raw text; they are
    parsed and compiled by the catalog loader so that one malformed entry
    never prevents the rest of the catalog from loading.
    """

    name: str = Field(..., description="Unique tool name within the catalog")
    description: str = Field(default="", description="Description sent to the remote service")
    input_schema_text: str = Field(default="{}", description="JSON schema of the tool input, as text")
    script_text: str = Field(default="", description="Python source defining an `execute(params)` entry point")
    run_after_init: bool = Field(default=False, description="Run automatically once readiness gates hold")
    order: int = Field(default=0, description="Position in the catalog, densified to 1..N on mutation")


class GlobalParameter(BaseSchema):
    """Named configuration value available to every tool script as ``globals[key]``."""

    id: str = Field(default_factory=generate_parameter_id)
    key: str
    value: Optional[str] = None
    description: Optional[str] = None
    order: int = 0


class AgentConfig(BaseSchema):
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    global_parameters: list[GlobalParameter] = Field(default_factory=list)
    tools: list[ToolDefinition] = Field(default_factory=list)
    auto_initiate_conversation: bool = False


class Credentials(BaseSchema):
    """Temporary credentials obtained from the identity provider."""

    access_key_id: str
    secret_access_key: str
    session_token: str
    expiration: Optional[datetime] = None

    @field_validator("expiration")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expiration is None:
            return False
        return (now or _utc_now()) >= self.expiration
