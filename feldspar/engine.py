"""Sandboxed script engine.

Scripts are written in a restricted subset of Python compiled with
RestrictedPython. The engine keeps one namespace across runs, so variables and
functions defined on one REPL line are visible on the next, and host functions
registered with ``register_fn`` are callable by name.

Security:
    - Code is compiled with ``compile_restricted``
    - Attribute access goes through ``safer_getattr`` (no ``_private`` names)
    - ``import``, ``open``, ``exec``, ``eval`` and ``compile`` are unavailable
"""

import ast
import sys
from collections.abc import Callable
from types import CodeType
from typing import Any, TextIO

from RestrictedPython import compile_restricted, limited_builtins, safe_builtins, utility_builtins
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)

from feldspar.logging_config import get_logger

logger = get_logger(__name__)

# Builtins scripts must never see
BLOCKED_BUILTINS = frozenset(
    {
        "open",
        "exec",
        "eval",
        "compile",
        "__import__",
        "input",
        "breakpoint",
    }
)

_INPLACE_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "+=": lambda x, y: x + y,
    "-=": lambda x, y: x - y,
    "*=": lambda x, y: x * y,
    "/=": lambda x, y: x / y,
    "//=": lambda x, y: x // y,
    "%=": lambda x, y: x % y,
    "**=": lambda x, y: x**y,
    "|=": lambda x, y: x | y,
    "&=": lambda x, y: x & y,
}


class ScriptError(Exception):
    """Raised when a script fails to compile or raises while running."""

    def __init__(self, message: str, filename: str = "<repl>"):
        self.message = message
        self.filename = filename
        super().__init__(message)


class _PrintCollector:
    """Print target for RestrictedPython that writes straight to a stream."""

    def __init__(self, stream_getter: Callable[[], TextIO]):
        self._stream_getter = stream_getter

    def __call__(self, _getattr=None) -> "_PrintCollector":
        return self

    def _call_print(self, *args: Any, **kwargs: Any) -> None:
        kwargs.pop("file", None)
        print(*args, file=self._stream_getter(), **kwargs)


def _inplacevar(op: str, x: Any, y: Any) -> Any:
    try:
        return _INPLACE_OPERATORS[op](x, y)
    except KeyError:
        raise SyntaxError(f"Operator {op} is not allowed") from None


def _apply(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    return func(*args, **kwargs)


class ScriptEngine:
    """Runs restricted Python source in a persistent namespace.

    Example:
        >>> engine = ScriptEngine()
        >>> engine.register_fn("double", lambda x: x * 2)
        >>> engine.run("x = double(21)")
        []
        >>> engine.run("x")
        [42]
    """

    def __init__(self, output: TextIO | None = None):
        """Initialize the engine.

        Args:
            output: Stream that script ``print`` writes to (defaults to the current stdout)
        """
        self._output = output
        collector = _PrintCollector(self._stream)
        self.globals: dict[str, Any] = {
            "__name__": "__feldspar__",
            "__doc__": None,
            "__builtins__": self._build_safe_builtins(),
            "_getattr_": safer_getattr,
            "_getitem_": default_guarded_getitem,
            "_getiter_": default_guarded_getiter,
            "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
            "_unpack_sequence_": guarded_unpack_sequence,
            "_write_": full_write_guard,
            "_inplacevar_": _inplacevar,
            "_apply_": _apply,
            "_print_": collector,
            "_print": collector,
        }
        self.globals["__builtins__"]["print"] = collector._call_print
        self._host_names: list[str] = []

    def _stream(self) -> TextIO:
        return self._output or sys.stdout

    def _build_safe_builtins(self) -> dict[str, Any]:
        builtins = dict(safe_builtins)
        builtins.update(limited_builtins)
        builtins.update(utility_builtins)
        builtins.update(
            {
                "dict": dict,
                "list": list,
                "enumerate": enumerate,
                "reversed": reversed,
                "map": map,
                "filter": filter,
                "any": any,
                "all": all,
                "sum": sum,
                "min": min,
                "max": max,
                "getattr": safer_getattr,
            }
        )
        for blocked in BLOCKED_BUILTINS:
            builtins.pop(blocked, None)
        return builtins

    @property
    def host_functions(self) -> list[str]:
        """Names registered through ``register_fn``, in registration order."""
        return list(self._host_names)

    def register_fn(self, name: str, func: Callable[..., Any]) -> "ScriptEngine":
        """Expose a host callable to scripts under ``name``."""
        if not name.isidentifier() or name.startswith("_"):
            raise ValueError(f"Invalid script function name: {name!r}")
        self.globals[name] = func
        if name not in self._host_names:
            self._host_names.append(name)
        logger.debug(f"Registered host function {name!r}")
        return self

    def register_value(self, name: str, value: Any) -> "ScriptEngine":
        """Bind a plain value in the script namespace."""
        if not name.isidentifier() or name.startswith("_"):
            raise ValueError(f"Invalid script name: {name!r}")
        self.globals[name] = value
        return self

    def run(self, source: str, filename: str = "<repl>") -> list[Any]:
        """Run script source and return the values it produced.

        A single expression yields its value. A block of statements yields the
        value of its final statement when that statement is an expression.
        ``None`` values are dropped.

        Raises:
            ScriptError: If the source does not compile or raises at runtime
        """
        try:
            body, expression = self._compile(source, filename)
        except SyntaxError as e:
            raise ScriptError(f"{type(e).__name__}: {e}", filename) from e

        try:
            if body is not None:
                exec(body, self.globals)
            value = eval(expression, self.globals) if expression is not None else None
        except Exception as e:
            logger.debug(f"Script raised in {filename}", exc_info=True)
            raise ScriptError(f"{type(e).__name__}: {e}", filename) from e

        return [] if value is None else [value]

    def _compile(self, source: str, filename: str) -> tuple[CodeType | None, CodeType | None]:
        """Compile source into a statement block and an optional trailing expression."""
        try:
            return None, compile_restricted(source, filename=filename, mode="eval")
        except SyntaxError:
            pass

        tree = ast.parse(source, filename=filename, mode="exec")
        expression = None
        if tree.body and isinstance(tree.body[-1], ast.Expr):
            expression = compile_restricted(ast.unparse(tree.body.pop().value), filename=filename, mode="eval")
        body = compile_restricted(tree, filename=filename, mode="exec") if tree.body else None
        return body, expression
