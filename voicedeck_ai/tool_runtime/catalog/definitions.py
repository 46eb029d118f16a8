"""Tool catalog maintenance helpers.

Every mutation of a catalog returns a new list whose ``order`` fields are
re-densified to ``1..N`` (stable with respect to the previous order).
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List

from ..errors import ConfigParseError
from ..schemas.domain import ToolDefinition

PERMISSIVE_SCHEMA: Dict[str, Any] = {"type": "object", "properties": {}, "required": []}


def parse_input_schema(tool: ToolDefinition) -> Dict[str, Any]:
    """
    Parse a tool's input schema text.

    Raises:
        ConfigParseError: If the text is not a JSON object.
    """
    try:
        schema = json.loads(tool.input_schema_text)
    except (TypeError, ValueError) as e:
        raise ConfigParseError(tool.name, f"input schema is not valid JSON ({e})") from e
    if not isinstance(schema, dict):
        raise ConfigParseError(tool.name, "input schema must be a JSON object")
    return schema


def validate_tool(tool: ToolDefinition) -> List[str]:
    errors: List[str] = []
    if not tool.name.strip():
        errors.append("Tool name is required")
    if not tool.description.strip():
        errors.append("Tool description is required")
    if not tool.script_text.strip():
        errors.append("Tool script is required")
    if tool.input_schema_text:
        try:
            json.loads(tool.input_schema_text)
        except ValueError:
            errors.append("Input schema must be valid JSON")
    return errors


def validate_tools(tools: Iterable[ToolDefinition]) -> List[str]:
    """Validate a catalog: unique names plus per-tool checks (1-based positions in messages)."""
    errors: List[str] = []
    names: set[str] = set()
    for index, tool in enumerate(tools, start=1):
        if tool.name in names:
            errors.append(f"Duplicate tool name: {tool.name}")
        else:
            names.add(tool.name)
        errors.extend(f"Tool {index}: {error}" for error in validate_tool(tool))
    return errors


def reorder_tools(tools: Iterable[ToolDefinition]) -> List[ToolDefinition]:
    ordered = sorted(tools, key=lambda t: t.order)
    return [tool.model_copy(update={"order": index}) for index, tool in enumerate(ordered, start=1)]


def remove_tool(tools: Iterable[ToolDefinition], name: str) -> List[ToolDefinition]:
    return reorder_tools(t for t in tools if t.name != name)


def move_tool(tools: Iterable[ToolDefinition], name: str, new_position: int) -> List[ToolDefinition]:
    """Move ``name`` to the 1-based ``new_position`` (clamped) and re-densify."""
    ordered = reorder_tools(tools)
    moving = next((t for t in ordered if t.name == name), None)
    if moving is None:
        return ordered
    rest = [t for t in ordered if t.name != name]
    index = min(max(new_position, 1), len(rest) + 1) - 1
    rest.insert(index, moving)
    return [tool.model_copy(update={"order": i}) for i, tool in enumerate(rest, start=1)]
