"""Pydantic schemas shared across the tool runtime."""

from .domain import (
    BaseSchema,
    DEFAULT_SYSTEM_PROMPT,
    AgentConfig,
    Credentials,
    GlobalParameter,
    SessionState,
    ToolDefinition,
    generate_parameter_id,
)

__all__ = [
    "BaseSchema",
    "DEFAULT_SYSTEM_PROMPT",
    "AgentConfig",
    "Credentials",
    "GlobalParameter",
    "SessionState",
    "ToolDefinition",
    "generate_parameter_id",
]
