"""Restricted evaluator for operator-authored tool scripts."""

from .compiler import ENTRY_POINT, SAFE_BUILTINS, TOOL_BINDING_NAMES, CompiledScript, ScriptCompiler

__all__ = [
    "ENTRY_POINT",
    "SAFE_BUILTINS",
    "TOOL_BINDING_NAMES",
    "CompiledScript",
    "ScriptCompiler",
]
