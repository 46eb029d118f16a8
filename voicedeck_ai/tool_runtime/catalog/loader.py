from __future__ import annotations

"""Tool catalog loading.

``ToolCatalogLoader`` turns persisted ``ToolDefinition`` entries into
``ProcessedTool`` objects ready for registration with the remote service:
``(name, protocol definition, action)``.

Every ``action`` resolves the execution context through a provider at call
time, so a capability-set change that happens between tool loading and tool
invocation is always observed. An action never raises: any failure becomes a
JSON payload ``{"error": true, "message", "toolName", "sessionId"}`` because
every remote invocation must receive a protocol response.
"""

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Sequence

from voicedeck_ai.core.logging_config import get_logger

from ..context.builder import ExecutionContext
from ..errors import ConfigParseError, ScriptExecutionFailure, ToolRuntimeError
from ..sandbox.compiler import TOOL_BINDING_NAMES, CompiledScript, ScriptCompiler
from ..schemas.domain import ToolDefinition
from .definitions import PERMISSIVE_SCHEMA, parse_input_schema
from .parameters import GlobalParameterStore

if TYPE_CHECKING:
    from ..config_store import ConfigStore

logger = get_logger(__name__)

INIT_SESSION_ID = "init"
INIT_PAYLOAD = json.dumps({"content": "{}"})

ToolAction = Callable[..., Awaitable[str]]
ContextProvider = Callable[[], Optional[ExecutionContext]]


@dataclass(frozen=True)
class ProcessedTool:
    """A tool ready for registration with the remote service.

    Attributes
    ----------
    name:
        Tool name.
    definition:
        Protocol definition ``{name, description, inputSchema: {json: <schema text>}}``.
    action:
        ``action(session_id, raw_input_text, triggered_by_agent=True) -> str``.
    """

    name: str
    definition: Dict[str, Any]
    action: ToolAction
    order: int = 0
    run_after_init: bool = False


def parse_tool_input(raw_input_text: str) -> Any:
    """Parse a remote tool payload (``{"content": "<json>"}``), falling back to ``{"raw_input": ...}``."""
    try:
        envelope = json.loads(raw_input_text)
        content = envelope["content"]
        return json.loads(content) if isinstance(content, str) else content
    except (TypeError, ValueError, KeyError):
        logger.warning("Failed to parse tool input as JSON: %s", raw_input_text)
        return {"raw_input": raw_input_text}


def coerce_result(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, default=str)


def error_payload(message: str, *, tool_name: str, session_id: str) -> str:
    return json.dumps(
        {
            "error": True,
            "message": message or "Unknown error",
            "toolName": tool_name,
            "sessionId": session_id,
        }
    )


class ToolCatalogLoader:
    """Build executable tools from the configured catalog.

    Args:
        config_store: Source of the tool catalog.
        context_provider: Returns the *current* execution context; called on every invocation.
        parameter_store: Resolves the ``globals`` binding; defaults to one over ``config_store``.
        compiler: Script compiler used for tool bodies.
    """

    def __init__(
        self,
        config_store: "ConfigStore",
        context_provider: ContextProvider,
        *,
        parameter_store: Optional[GlobalParameterStore] = None,
        compiler: Optional[ScriptCompiler] = None,
    ) -> None:
        self._config_store = config_store
        self._context_provider = context_provider
        self._parameters = parameter_store or GlobalParameterStore(config_store)
        self._compiler = compiler or ScriptCompiler()

    def load_tools(self) -> List[ProcessedTool]:
        """Load and build every tool of the configured catalog, sorted by ``order``."""
        try:
            definitions = list(self._config_store.get_agent_config().tools)
        except Exception:
            logger.exception("Failed to load tools from configuration")
            return []
        logger.info("Loading %d tools from configuration", len(definitions))
        return self.build_tools(definitions)

    def build_tools(self, definitions: Sequence[ToolDefinition]) -> List[ProcessedTool]:
        processed: List[ProcessedTool] = []
        for definition in definitions:
            try:
                processed.append(self.build_tool(definition))
                logger.debug("Processed tool: %s", definition.name)
            except Exception:
                logger.exception("Failed to process tool %s", definition.name)
        processed.sort(key=lambda tool: tool.order)
        logger.info("Successfully processed %d tools", len(processed))
        return processed

    def build_tool(self, definition: ToolDefinition) -> ProcessedTool:
        try:
            schema = parse_input_schema(definition)
        except ConfigParseError as e:
            logger.error("%s; using a permissive schema", e)
            schema = dict(PERMISSIVE_SCHEMA)

        return ProcessedTool(
            name=definition.name,
            definition={
                "name": definition.name,
                "description": definition.description,
                "inputSchema": {"json": json.dumps(schema)},
            },
            action=self._create_action(definition.script_text, definition.name),
            order=definition.order,
            run_after_init=definition.run_after_init,
        )

    def filter_init_tools(self, tools: Optional[Sequence[ProcessedTool]] = None) -> List[ProcessedTool]:
        """Return the tools flagged to run after initialization, preserving order."""
        if tools is None:
            tools = self.load_tools()
        return [tool for tool in tools if tool.run_after_init]

    async def run_init_tools(self, tools: Sequence[ProcessedTool]) -> List[str]:
        """Run initialization tools strictly one after another; a failing tool does not stop the rest."""
        results: List[str] = []
        for tool in tools:
            logger.info("Running initialization tool: %s (order: %d)", tool.name, tool.order)
            try:
                results.append(await tool.action(INIT_SESSION_ID, INIT_PAYLOAD, False))
                logger.info("Initialization tool %s completed", tool.name)
            except Exception as e:
                logger.error("Initialization tool %s failed: %s", tool.name, e)
                results.append(error_payload(str(e), tool_name=tool.name, session_id=INIT_SESSION_ID))
        return results

    def _create_action(self, script_text: str, tool_name: str) -> ToolAction:
        compiled: Optional[CompiledScript] = None

        async def action(session_id: str, raw_input_text: str, triggered_by_agent: bool = True) -> str:
            nonlocal compiled
            logger.info(
                "Executing tool: %s for session: %s (triggered_by_agent: %s)", tool_name, session_id, triggered_by_agent
            )
            try:
                context = self._context_provider()
                if context is None:
                    raise ToolRuntimeError("Tool execution context is not available")

                bindings = context.as_bindings()
                bindings.update(
                    {
                        "globals": self._parameters.resolve(),
                        "session_id": session_id,
                        "input": parse_tool_input(raw_input_text),
                        "tool_name": tool_name,
                        "triggered_by_agent": triggered_by_agent,
                    }
                )
                if compiled is None:
                    compiled = self._compiler.compile(script_text, TOOL_BINDING_NAMES, tool_name=tool_name)
                result = coerce_result(await compiled.run(bindings))
                logger.info("Tool %s executed successfully", tool_name)
                logger.debug("Tool %s result: %s", tool_name, result)
                return result
            except ScriptExecutionFailure as e:
                logger.error("Tool %s execution failed (%s): %s", tool_name, e.phase, e)
                return error_payload(str(e), tool_name=tool_name, session_id=session_id)
            except Exception as e:
                logger.exception("Tool %s execution failed", tool_name)
                return error_payload(str(e) or type(e).__name__, tool_name=tool_name, session_id=session_id)

        action.__name__ = f"tool_action_{tool_name}"
        return action
