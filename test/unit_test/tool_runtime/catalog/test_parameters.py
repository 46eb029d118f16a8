from __future__ import annotations

from voicedeck_ai.tool_runtime.catalog import (
    GlobalParameterStore,
    remove_parameter,
    reorder_parameters,
    validate_parameter,
    validate_parameters,
)
from voicedeck_ai.tool_runtime.config_store import InMemoryConfigStore
from voicedeck_ai.tool_runtime.schemas import AgentConfig, GlobalParameter


def _store(*params: GlobalParameter) -> GlobalParameterStore:
    return GlobalParameterStore(InMemoryConfigStore(AgentConfig(global_parameters=list(params))))


def test_generated_ids_are_unique() -> None:
    ids = {GlobalParameter(key=f"K{i}", value="v").id for i in range(20)}
    assert len(ids) == 20
    assert all(i.startswith("param_") for i in ids)


def test_validate_parameter_requires_key_and_value() -> None:
    assert validate_parameter(GlobalParameter(key="", value=None)) == [
        "Parameter key is required",
        "Parameter value is required",
    ]


def test_validate_parameters_rejects_case_insensitive_duplicates() -> None:
    errors = validate_parameters([GlobalParameter(key="API_URL", value="a"), GlobalParameter(key="api_url", value="b")])
    assert errors == ["Duplicate parameter key: api_url (case-insensitive match)"]


def test_reorder_and_remove_parameters() -> None:
    a = GlobalParameter(id="a", key="A", value="1", order=5)
    b = GlobalParameter(id="b", key="B", value="2", order=1)
    c = GlobalParameter(id="c", key="C", value="3", order=9)

    assert [(p.id, p.order) for p in reorder_parameters([a, b, c])] == [("b", 1), ("a", 2), ("c", 3)]
    assert [(p.id, p.order) for p in remove_parameter([a, b, c], "a")] == [("b", 1), ("c", 2)]


def test_resolve_skips_parameters_without_value() -> None:
    store = _store(
        GlobalParameter(key="API_URL", value="http://mock/api", order=1),
        GlobalParameter(key="EMPTY", value=None, order=2),
        GlobalParameter(key="STORE_ID", value="42", order=3),
    )
    assert store.resolve() == {"API_URL": "http://mock/api", "STORE_ID": "42"}


def test_get_is_case_insensitive() -> None:
    store = _store(GlobalParameter(key="Api_Url", value="http://mock"))
    assert store.get("API_URL") == "http://mock"
    assert store.get("missing") is None


def test_resolve_reads_current_configuration() -> None:
    config_store = InMemoryConfigStore(AgentConfig(global_parameters=[GlobalParameter(key="A", value="1")]))
    params = GlobalParameterStore(config_store)
    assert params.resolve() == {"A": "1"}

    config_store.save_agent_config(AgentConfig(global_parameters=[GlobalParameter(key="A", value="2")]))

    assert params.resolve() == {"A": "2"}
