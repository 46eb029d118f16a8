from __future__ import annotations

"""Capability registration data models.

A capability is a named bundle of callable methods that a mounted UI piece
(menu, cart, chat, app shell, auth, notifications) exposes to tool scripts.

Registrations are immutable once built: the registry swaps whole
registrations, so readers never observe a partially populated method map.
Method descriptors hold *live* references to the provider's callables, so a
call always observes the provider's current state.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from ..schemas.domain import BaseSchema

_METADATA_ATTR = "__tool_metadata__"


class ParameterSpec(BaseSchema):
    """Documentation of a single capability-method parameter."""

    name: str
    type: str = "any"
    description: str = ""
    required: bool = True


@dataclass(frozen=True)
class MethodDescriptor:
    """One exposed method of a capability.

    Attributes
    ----------
    func:
        Live reference to the provider's callable (sync or async).
    description:
        Human-readable description used in operator documentation.
    parameters:
        Parameter documentation, in call order.
    """

    func: Callable[..., Any]
    description: str = ""
    parameters: tuple[ParameterSpec, ...] = ()

    @classmethod
    def of(cls, func: Callable[..., Any]) -> "MethodDescriptor":
        """Build a descriptor from a callable, reading ``describe_method`` metadata if present."""
        meta = getattr(func, _METADATA_ATTR, None) or {}
        return cls(
            func=func,
            description=str(meta.get("description") or ""),
            parameters=tuple(meta.get("parameters") or ()),
        )


def describe_method(
    description: str,
    parameters: Optional[Iterable[ParameterSpec | Dict[str, Any]]] = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Attach documentation metadata to a capability method.

    The decorated function is returned unchanged apart from the metadata
    attribute, so it can still be used directly by its owner.
    """

    specs = tuple(p if isinstance(p, ParameterSpec) else ParameterSpec.model_validate(p) for p in parameters or ())

    def _decorate(func: Callable[..., Any]) -> Callable[..., Any]:
        try:
            setattr(func, _METADATA_ATTR, {"description": description, "parameters": specs})
        except AttributeError:
            # Bound methods do not accept attributes; set on the underlying function.
            setattr(getattr(func, "__func__"), _METADATA_ATTR, {"description": description, "parameters": specs})
        return func

    return _decorate


@dataclass(frozen=True)
class CapabilityRegistration:
    """Registration of a capability under a unique name."""

    name: str
    methods: Mapping[str, MethodDescriptor] = field(default_factory=dict)
    category: str = "ui"
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("capability name is required")
        object.__setattr__(self, "methods", MappingProxyType(dict(self.methods)))
        if not self.description:
            object.__setattr__(self, "description", f"{self.name} component methods")

    @classmethod
    def from_callables(
        cls,
        name: str,
        methods: Mapping[str, Callable[..., Any]],
        *,
        category: str = "ui",
        description: str = "",
    ) -> "CapabilityRegistration":
        """Build a registration from plain callables (documentation taken from ``describe_method``)."""
        return cls(
            name=name,
            methods={method_name: MethodDescriptor.of(fn) for method_name, fn in methods.items()},
            category=category,
            description=description,
        )

    def callables(self) -> Dict[str, Callable[..., Any]]:
        """Return the method name → live callable map exposed to tool scripts."""
        return {method_name: desc.func for method_name, desc in self.methods.items()}

    def describe(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "description": self.description,
            "methods": {
                method_name: {
                    "description": desc.description,
                    "parameters": [p.model_dump() for p in desc.parameters],
                }
                for method_name, desc in self.methods.items()
            },
        }


__all__ = [
    "CapabilityRegistration",
    "MethodDescriptor",
    "ParameterSpec",
    "describe_method",
]
