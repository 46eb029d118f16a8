"""Global parameters available to every tool script.

``GlobalParameterStore`` resolves the configured parameters into the flat
``globals`` map bound into each invocation. Keys are unique
case-insensitively.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from voicedeck_ai.core.logging_config import get_logger

from ..schemas.domain import GlobalParameter

if TYPE_CHECKING:
    from ..config_store import ConfigStore

logger = get_logger(__name__)


def validate_parameter(param: GlobalParameter) -> List[str]:
    errors: List[str] = []
    if not param.key.strip():
        errors.append("Parameter key is required")
    if param.value is None:
        errors.append("Parameter value is required")
    return errors


def validate_parameters(params: Iterable[GlobalParameter]) -> List[str]:
    errors: List[str] = []
    keys: set[str] = set()
    for index, param in enumerate(params, start=1):
        lower_key = param.key.lower()
        if lower_key in keys:
            errors.append(f"Duplicate parameter key: {param.key} (case-insensitive match)")
        else:
            keys.add(lower_key)
        errors.extend(f"Parameter {index}: {error}" for error in validate_parameter(param))
    return errors


def reorder_parameters(params: Iterable[GlobalParameter]) -> List[GlobalParameter]:
    ordered = sorted(params, key=lambda p: p.order)
    return [param.model_copy(update={"order": index}) for index, param in enumerate(ordered, start=1)]


def remove_parameter(params: Iterable[GlobalParameter], param_id: str) -> List[GlobalParameter]:
    return reorder_parameters(p for p in params if p.id != param_id)


class GlobalParameterStore:
    """Resolve global parameters from the configuration store.

    Parameters are read from the store on every call so that edits apply to
    the next tool invocation without rebuilding anything.
    """

    def __init__(self, config_store: "ConfigStore") -> None:
        self._config_store = config_store

    def parameters(self) -> List[GlobalParameter]:
        return sorted(self._config_store.get_agent_config().global_parameters, key=lambda p: p.order)

    def resolve(self) -> Dict[str, str]:
        """Return ``{key: value}`` for every parameter with a key and a value."""
        resolved: Dict[str, str] = {}
        for param in self.parameters():
            if param.key and param.value is not None:
                resolved[param.key] = param.value
        return resolved

    def get(self, key: str) -> Optional[str]:
        """Case-insensitive lookup."""
        lower_key = key.lower()
        for param in self.parameters():
            if param.key.lower() == lower_key:
                return param.value
        return None
