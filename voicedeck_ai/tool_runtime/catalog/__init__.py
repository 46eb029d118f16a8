"""Tool catalog: persisted definitions, global parameters and loading.

This package exports:

- ``ToolCatalogLoader``/``ProcessedTool``: build executable tools from the catalog.
- ``GlobalParameterStore``: resolve the ``globals`` binding.
- Catalog maintenance helpers that keep ``order`` dense and names unique.
"""

from .definitions import (
    PERMISSIVE_SCHEMA,
    move_tool,
    parse_input_schema,
    remove_tool,
    reorder_tools,
    validate_tool,
    validate_tools,
)
from .loader import ProcessedTool, ToolCatalogLoader, coerce_result, error_payload, parse_tool_input
from .parameters import (
    GlobalParameterStore,
    remove_parameter,
    reorder_parameters,
    validate_parameter,
    validate_parameters,
)

__all__ = [
    "PERMISSIVE_SCHEMA",
    "move_tool",
    "parse_input_schema",
    "remove_tool",
    "reorder_tools",
    "validate_tool",
    "validate_tools",
    "ProcessedTool",
    "ToolCatalogLoader",
    "coerce_result",
    "error_payload",
    "parse_tool_input",
    "GlobalParameterStore",
    "remove_parameter",
    "reorder_parameters",
    "validate_parameter",
    "validate_parameters",
]
