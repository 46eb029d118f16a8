from __future__ import annotations

import json

import pytest

from voicedeck_ai.tool_runtime.capabilities import CapabilityRegistration, CapabilityRegistry
from voicedeck_ai.tool_runtime.catalog import ToolCatalogLoader, coerce_result, error_payload, parse_tool_input
from voicedeck_ai.tool_runtime.catalog.loader import INIT_PAYLOAD, INIT_SESSION_ID
from voicedeck_ai.tool_runtime.config_store import InMemoryConfigStore
from voicedeck_ai.tool_runtime.context import ExecutionContextBuilder
from voicedeck_ai.tool_runtime.schemas import AgentConfig, GlobalParameter, ToolDefinition

RECORD_SCRIPT = """
async def execute(params):
    await components["log"]["record"](tool_name, session_id, triggered_by_agent, input)
    return {"ok": True}
"""


class _Recorder:
    def __init__(self) -> None:
        self.calls = []

    async def record(self, tool_name, session_id, triggered_by_agent, payload):
        self.calls.append((tool_name, session_id, triggered_by_agent, payload))


def _setup(tools, *, params=(), runtime_settings=None):
    registry = CapabilityRegistry()
    recorder = _Recorder()
    registry.register(CapabilityRegistration.from_callables("log", {"record": recorder.record}))
    config_store = InMemoryConfigStore(AgentConfig(tools=list(tools), global_parameters=list(params)))
    builder = ExecutionContextBuilder(registry, settings=runtime_settings)
    loader = ToolCatalogLoader(config_store, builder.build)
    return loader, registry, recorder, config_store


def _tool(name: str, order: int, script: str = RECORD_SCRIPT, **kwargs) -> ToolDefinition:
    return ToolDefinition(name=name, description=f"{name} tool", script_text=script, order=order, **kwargs)


def test_parse_tool_input_unwraps_content() -> None:
    assert parse_tool_input(json.dumps({"content": json.dumps({"q": 1})})) == {"q": 1}
    assert parse_tool_input(json.dumps({"content": {"q": 2}})) == {"q": 2}


@pytest.mark.parametrize("raw", ["not json", json.dumps({"other": 1}), json.dumps({"content": "{bad"})])
def test_parse_tool_input_falls_back_to_raw(raw: str) -> None:
    assert parse_tool_input(raw) == {"raw_input": raw}


def test_coerce_result() -> None:
    assert coerce_result("plain") == "plain"
    assert json.loads(coerce_result({"a": [1]})) == {"a": [1]}
    assert coerce_result(None) == "null"


def test_error_payload_shape() -> None:
    assert json.loads(error_payload("boom", tool_name="t", session_id="s")) == {
        "error": True,
        "message": "boom",
        "toolName": "t",
        "sessionId": "s",
    }
    assert json.loads(error_payload("", tool_name="t", session_id="s"))["message"] == "Unknown error"


def test_load_tools_sorted_with_protocol_definition(runtime_settings) -> None:
    loader, *_ = _setup(
        [_tool("second", 2, input_schema_text='{"type": "object"}'), _tool("first", 1)],
        runtime_settings=runtime_settings,
    )

    tools = loader.load_tools()

    assert [t.name for t in tools] == ["first", "second"]
    assert tools[1].definition == {
        "name": "second",
        "description": "second tool",
        "inputSchema": {"json": json.dumps({"type": "object"})},
    }


def test_malformed_schema_falls_back_to_permissive(runtime_settings) -> None:
    loader, *_ = _setup([_tool("broken", 1, input_schema_text="{nope")], runtime_settings=runtime_settings)

    (tool,) = loader.load_tools()

    assert json.loads(tool.definition["inputSchema"]["json"]) == {"type": "object", "properties": {}, "required": []}


@pytest.mark.asyncio
async def test_action_passes_session_and_input(runtime_settings) -> None:
    loader, _registry, recorder, _ = _setup([_tool("lookup", 1)], runtime_settings=runtime_settings)
    (tool,) = loader.load_tools()

    result = await tool.action("sess-9", json.dumps({"content": json.dumps({"q": "pizza"})}))

    assert json.loads(result) == {"ok": True}
    assert recorder.calls == [("lookup", "sess-9", True, {"q": "pizza"})]


@pytest.mark.asyncio
async def test_action_sees_global_parameters(runtime_settings) -> None:
    script = "async def execute(params):\n    return globals['API_URL']\n"
    loader, *_ = _setup(
        [_tool("cfg", 1, script=script)],
        params=[GlobalParameter(key="API_URL", value="http://mock/api")],
        runtime_settings=runtime_settings,
    )
    (tool,) = loader.load_tools()

    assert await tool.action("s", INIT_PAYLOAD) == "http://mock/api"


@pytest.mark.asyncio
async def test_action_uses_shared_http_client(runtime_settings, mock_http) -> None:
    script = """
async def execute(params):
    response = await http.get("/menu/" + input["store"])
    response.raise_for_status()
    return response.json()
"""
    client = mock_http({"/menu/7": {"items": ["pizza", "soda"]}})
    builder = ExecutionContextBuilder(CapabilityRegistry(), http_client=client, settings=runtime_settings)
    loader = ToolCatalogLoader(InMemoryConfigStore(AgentConfig(tools=[_tool("menu", 1, script=script)])), builder.build)
    (tool,) = loader.load_tools()

    found = json.loads(await tool.action("s", json.dumps({"content": json.dumps({"store": "7"})})))
    missing = json.loads(await tool.action("s", json.dumps({"content": json.dumps({"store": "9"})})))

    assert found == {"items": ["pizza", "soda"]}
    assert missing["error"] is True
    assert "404" in missing["message"]
    await client.aclose()


@pytest.mark.asyncio
async def test_throwing_script_returns_error_payload(runtime_settings) -> None:
    script = "async def execute(params):\n    raise RuntimeError('kitchen closed')\n"
    loader, *_ = _setup([_tool("order", 1, script=script)], runtime_settings=runtime_settings)
    (tool,) = loader.load_tools()

    payload = json.loads(await tool.action("sess-1", INIT_PAYLOAD))

    assert payload["error"] is True
    assert "kitchen closed" in payload["message"]
    assert payload["toolName"] == "order"
    assert payload["sessionId"] == "sess-1"


@pytest.mark.asyncio
async def test_uncompilable_script_returns_error_payload(runtime_settings) -> None:
    loader, *_ = _setup([_tool("bad", 1, script="import os\n")], runtime_settings=runtime_settings)
    (tool,) = loader.load_tools()

    payload = json.loads(await tool.action("sess-1", INIT_PAYLOAD))

    assert payload["error"] is True
    assert payload["toolName"] == "bad"


@pytest.mark.asyncio
async def test_missing_context_returns_error_payload() -> None:
    loader = ToolCatalogLoader(InMemoryConfigStore(AgentConfig(tools=[_tool("t", 1)])), lambda: None)
    (tool,) = loader.load_tools()

    payload = json.loads(await tool.action("s", INIT_PAYLOAD))

    assert payload["message"] == "Tool execution context is not available"


@pytest.mark.asyncio
async def test_action_observes_context_changes_after_loading(runtime_settings) -> None:
    registry = CapabilityRegistry()
    builder = ExecutionContextBuilder(registry, settings=runtime_settings)
    script = "async def execute(params):\n    return sorted(components)\n"
    loader = ToolCatalogLoader(InMemoryConfigStore(AgentConfig(tools=[_tool("t", 1, script=script)])), builder.build)
    (tool,) = loader.load_tools()

    registry.register(CapabilityRegistration.from_callables("cart", {"add": lambda: None}))

    assert json.loads(await tool.action("s", INIT_PAYLOAD)) == ["cart"]


def test_filter_init_tools_preserves_order(runtime_settings) -> None:
    loader, *_ = _setup(
        [
            _tool("c", 3, run_after_init=True),
            _tool("a", 1, run_after_init=True),
            _tool("b", 2),
        ],
        runtime_settings=runtime_settings,
    )

    assert [t.name for t in loader.filter_init_tools()] == ["a", "c"]


@pytest.mark.asyncio
async def test_run_init_tools_sequential_with_init_arguments(runtime_settings) -> None:
    loader, _registry, recorder, _ = _setup(
        [_tool("second", 2, run_after_init=True), _tool("first", 1, run_after_init=True)],
        runtime_settings=runtime_settings,
    )

    results = await loader.run_init_tools(loader.filter_init_tools())

    assert len(results) == 2
    assert recorder.calls == [
        ("first", INIT_SESSION_ID, False, {}),
        ("second", INIT_SESSION_ID, False, {}),
    ]


@pytest.mark.asyncio
async def test_failing_init_tool_does_not_stop_the_rest(runtime_settings) -> None:
    failing = "async def execute(params):\n    raise ValueError('first failed')\n"
    loader, _registry, recorder, _ = _setup(
        [_tool("first", 1, script=failing, run_after_init=True), _tool("second", 2, run_after_init=True)],
        runtime_settings=runtime_settings,
    )

    results = await loader.run_init_tools(loader.filter_init_tools())

    assert json.loads(results[0])["error"] is True
    assert [call[0] for call in recorder.calls] == ["second"]


def test_load_tools_returns_empty_when_configuration_unreadable() -> None:
    class BrokenStore(InMemoryConfigStore):
        def get_agent_config(self):
            raise RuntimeError("storage corrupted")

    assert ToolCatalogLoader(BrokenStore(), lambda: None).load_tools() == []
