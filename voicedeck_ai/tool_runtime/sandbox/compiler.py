from __future__ import annotations

"""Tool script compilation and execution.

A tool script is Python source text that defines one entry point::

    async def execute(params):
        cart = params["components"]["cart"]
        return await cart["add_item"](params["input"]["item_id"])

``ScriptCompiler.compile`` turns the text into a ``CompiledScript`` with
RestrictedPython. The restricting policy accepts ``async def`` and ``await``,
rejects import statements and refuses every name or attribute starting with
``_``, so scripts cannot walk from a binding to frames, modules or the real
builtins. ``CompiledScript.run`` executes the code in a fresh namespace built
from ``safe_globals``, the attribute/item/iteration/write guards and the
supplied bindings, then awaits ``execute(params)`` where ``params`` maps the
same bindings.

There is no CPU, memory or time quota, and scripts may perform network calls
through the bindings they receive. Tool authors are trusted operators.
"""

import ast
import builtins
import inspect
import operator
from dataclasses import dataclass
from types import CodeType, MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterable, Mapping, Optional

from RestrictedPython import RestrictingNodeTransformer, compile_restricted_exec, safe_builtins, safe_globals
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)
from RestrictedPython.PrintCollector import PrintCollector

from voicedeck_ai.core.logging_config import get_logger

from ..errors import ScriptExecutionFailure

logger = get_logger(__name__)

ENTRY_POINT = "execute"

# Bindings a catalog tool receives: execution context plus per-call values.
TOOL_BINDING_NAMES: FrozenSet[str] = frozenset(
    {
        "http",
        "components",
        "utils",
        "auth",
        "runtime",
        "globals",
        "session_id",
        "input",
        "tool_name",
        "triggered_by_agent",
    }
)

_MISSING = object()


def _guarded_getattr(obj: Any, name: str, *default: Any) -> Any:
    value = safer_getattr(obj, name, _MISSING)
    if value is _MISSING:
        if default:
            return default[0]
        raise AttributeError(f"{type(obj).__name__!r} object has no attribute {name!r}")
    return value


_INPLACE_OPERATORS: Mapping[str, Callable[[Any, Any], Any]] = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
    "|=": operator.ior,
    "&=": operator.iand,
}


def _inplace_var(op: str, target: Any, value: Any) -> Any:
    if op not in _INPLACE_OPERATORS:
        raise TypeError(f"Augmented assignment {op} is not supported in tool scripts")
    return _INPLACE_OPERATORS[op](target, value)


def _apply(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    return func(*args, **kwargs)


_EXTRA_BUILTIN_NAMES = (
    "all",
    "any",
    "dict",
    "enumerate",
    "filter",
    "frozenset",
    "iter",
    "list",
    "map",
    "max",
    "min",
    "next",
    "reversed",
    "set",
    "sum",
    "Exception",
    "KeyError",
    "LookupError",
    "RuntimeError",
    "TypeError",
    "ValueError",
)

SAFE_BUILTINS: Mapping[str, Any] = MappingProxyType(
    {
        **safe_builtins,
        **{name: getattr(builtins, name) for name in _EXTRA_BUILTIN_NAMES},
        "getattr": _guarded_getattr,
    }
)

_GUARDS: Mapping[str, Any] = MappingProxyType(
    {
        "_getattr_": _guarded_getattr,
        "_getitem_": default_guarded_getitem,
        "_getiter_": default_guarded_getiter,
        "_write_": full_write_guard,
        "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
        "_unpack_sequence_": guarded_unpack_sequence,
        "_inplacevar_": _inplace_var,
        "_apply_": _apply,
        "_print_": PrintCollector,
        "__metaclass__": type,
    }
)


class ToolScriptPolicy(RestrictingNodeTransformer):
    """RestrictedPython policy for tool scripts: coroutines allowed, imports refused."""

    visit_AsyncFunctionDef = RestrictingNodeTransformer.visit_FunctionDef

    def visit_Await(self, node: ast.Await) -> ast.AST:
        return self.node_contents_visit(node)

    def visit_Import(self, node: ast.Import) -> ast.AST:
        self.error(node, "import statements are not available inside tool scripts")
        return node

    def visit_ImportFrom(self, node: ast.ImportFrom) -> ast.AST:
        self.error(node, "import statements are not available inside tool scripts")
        return node


def _has_entry_point(source: str) -> bool:
    tree = ast.parse(source)
    return any(
        isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and node.name == ENTRY_POINT for node in tree.body
    )


@dataclass(frozen=True)
class CompiledScript:
    """A compiled tool script bound to a binding allow-list."""

    code: CodeType
    allowed_bindings: FrozenSet[str]
    tool_name: Optional[str] = None

    def _namespace(self, bindings: Mapping[str, Any]) -> Dict[str, Any]:
        namespace: Dict[str, Any] = dict(safe_globals)
        namespace["__builtins__"] = dict(SAFE_BUILTINS)
        namespace["__name__"] = "tool_script"
        namespace.update(bindings)
        namespace.update(_GUARDS)
        return namespace

    async def run(self, bindings: Mapping[str, Any]) -> Any:
        """
        Execute the script and return the awaited result of ``execute(params)``.

        Raises:
            ScriptExecutionFailure: For bindings outside the allow-list or any
                exception raised while defining or running the entry point.
        """
        unexpected = sorted(set(bindings) - self.allowed_bindings)
        if unexpected:
            raise ScriptExecutionFailure(
                f"Bindings not allowed for this script: {', '.join(unexpected)}",
                phase="runtime",
                tool_name=self.tool_name,
            )

        namespace = self._namespace(bindings)
        try:
            exec(self.code, namespace)
            entry = namespace.get(ENTRY_POINT)
            if not callable(entry):
                raise TypeError(f'Tool script must define an async function named "{ENTRY_POINT}"')
            result = entry(dict(bindings))
            if inspect.isawaitable(result):
                result = await result
            return result
        except ScriptExecutionFailure:
            raise
        except Exception as e:
            raise ScriptExecutionFailure(
                f"Script execution failed: {e}" if str(e) else f"Script execution failed: {type(e).__name__}",
                phase="runtime",
                tool_name=self.tool_name,
            ) from e


class ScriptCompiler:
    """Compile tool script text into ``CompiledScript`` units."""

    def compile(
        self,
        source: str,
        allowed_bindings: Iterable[str] = TOOL_BINDING_NAMES,
        *,
        tool_name: Optional[str] = None,
    ) -> CompiledScript:
        """
        Compile script text.

        Args:
            source: Python source defining ``execute``.
            allowed_bindings: Names the script may receive.
            tool_name: Owning tool, used in error reporting.

        Raises:
            ScriptExecutionFailure: With ``phase="compile"`` on syntax errors,
                restricted constructs (imports, ``_``-prefixed names and
                attributes) or a missing entry point.
        """
        filename = f"<tool:{tool_name}>" if tool_name else "<tool>"
        result = compile_restricted_exec(source or "", filename=filename, policy=ToolScriptPolicy)
        if result.errors or result.code is None:
            reason = "; ".join(result.errors) or "no code produced"
            logger.error("Failed to compile script for tool %s: %s", tool_name, reason)
            raise ScriptExecutionFailure(f"Script compilation failed: {reason}", phase="compile", tool_name=tool_name)
        if not _has_entry_point(source):
            raise ScriptExecutionFailure(
                f'Script compilation failed: tool script must define a function named "{ENTRY_POINT}"',
                phase="compile",
                tool_name=tool_name,
            )
        return CompiledScript(code=result.code, allowed_bindings=frozenset(allowed_bindings), tool_name=tool_name)

    async def compile_and_run(
        self,
        source: str,
        bindings: Mapping[str, Any],
        *,
        tool_name: Optional[str] = None,
    ) -> Any:
        """Compile ``source`` with the binding names as allow-list and run it."""
        compiled = self.compile(source, bindings.keys(), tool_name=tool_name)
        return await compiled.run(bindings)
