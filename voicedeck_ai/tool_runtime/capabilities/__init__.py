"""Capability registry and registration models.

 A *capability* is a named bundle of methods a mounted UI piece exposes to
 tool scripts.

 - UI pieces publish a ``CapabilityRegistration`` when they mount and remove
   it when they unmount.
 - The ``CapabilityRegistry`` is the single name-keyed lookup; tool scripts
   reach capabilities only through the execution context built from it.

 This package exports:

 - ``CapabilityRegistration``/``MethodDescriptor``/``ParameterSpec``: registration models.
 - ``describe_method``: decorator attaching documentation to a method.
 - ``CapabilityRegistry``: name → registration mapping with readiness polling.
 """

from .base import CapabilityRegistration, MethodDescriptor, ParameterSpec, describe_method
from .registry import CapabilityRegistry

__all__ = [
    "CapabilityRegistration",
    "MethodDescriptor",
    "ParameterSpec",
    "describe_method",
    "CapabilityRegistry",
]
