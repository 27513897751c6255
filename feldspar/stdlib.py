"""Host function registry.

Binds the host operations to script names. Functions that need the runtime
(the model target and background loop) are bound to the runtime passed in;
nothing here reads global state.

Registered functions:
    chat:  prompt, configure_model
    io:    lookup_env
    tool:  tool_new, tool_describe, is_tool,
           tool_schema_string, tool_schema_number, tool_schema_bool
"""

from collections.abc import Sequence
from functools import partial
from typing import Any

from feldspar import api
from feldspar.context import FeldsparRuntime
from feldspar.engine import ScriptEngine
from feldspar.logging_config import get_logger
from feldspar.models.tool import Tool, ToolSchema

logger = get_logger(__name__)


def tool_new(name: str, description: str, schema: Sequence[Sequence[Any]], handler: str) -> Tool:
    """Build a tool descriptor from ``[[param, tool_schema_...()], ...]`` pairs."""
    return Tool(name=name, description=description, schema=[tuple(pair) for pair in schema], handler=handler)


def tool_describe(tool: Tool) -> str:
    return tool.describe()


def is_tool(value: Any) -> bool:
    return isinstance(value, Tool)


def register_std_chat(engine: ScriptEngine, runtime: FeldsparRuntime) -> None:
    engine.register_fn("prompt", partial(api.prompt, runtime))
    engine.register_fn("configure_model", partial(api.configure_model, runtime))


def register_std_io(engine: ScriptEngine) -> None:
    engine.register_fn("lookup_env", api.lookup_env)


def register_std_tool(engine: ScriptEngine) -> None:
    (
        engine.register_fn("tool_new", tool_new)
        .register_fn("tool_describe", tool_describe)
        .register_fn("is_tool", is_tool)
        .register_fn("tool_schema_string", lambda: ToolSchema.STRING)
        .register_fn("tool_schema_number", lambda: ToolSchema.NUMBER)
        .register_fn("tool_schema_bool", lambda: ToolSchema.BOOL)
    )


def init_engine(runtime: FeldsparRuntime, engine: ScriptEngine | None = None) -> ScriptEngine:
    """Create a sandboxed engine with every host function registered.

    Args:
        runtime: Runtime the chat functions are bound to
        engine: Engine to register into (a new one is created if omitted)

    Returns:
        The engine, ready to run scripts
    """
    engine = engine or ScriptEngine()

    register_std_chat(engine, runtime)
    register_std_io(engine)
    register_std_tool(engine)

    logger.debug(f"Host functions registered: {', '.join(engine.host_functions)}")
    return engine
