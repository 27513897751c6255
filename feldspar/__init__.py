"""feldspar - a scripting REPL with language-model host functions.

feldspar embeds a sandboxed Python dialect and exposes a handful of host
functions to it:
- configure_model: point the session at an OpenAI, Anthropic, Ollama,
  Gemini, Groq or Cohere endpoint
- prompt: send a conversation to the model and get its reply as a string
- lookup_env: read environment variables
- tool_new / tool_describe: build and render tool descriptors

Quick Start:
    $ feldspar
    λ > configure_model("http://localhost:11434", "", "llama3", "ollama")
    Configured: adapter=ollama, model=llama3, url=http://localhost:11434
    λ > prompt([["system", "Be brief."]], "What is 2+2?")
    => 4

Embedding:
    >>> from feldspar import FeldsparRuntime, init_engine
    >>>
    >>> with FeldsparRuntime() as runtime:
    ...     engine = init_engine(runtime)
    ...     engine.run('lookup_env("HOME").ok')

Main Components:
    - FeldsparRuntime: Owns the model target and background event loop
    - ScriptEngine: Sandboxed script engine
    - init_engine: Engine with every host function registered
    - Repl: Interactive loop
    - FeldsparSettings: Global settings manager
"""

from feldspar._version import get_version
from feldspar.api import (
    APIConnectionError,
    AuthenticationError,
    InvalidRequestError,
    LLMError,
    RateLimitError,
    TokenLimitError,
    classify_llm_error,
    configure_model,
    lookup_env,
    prompt,
)
from feldspar.config import FeldsparSettings, get_settings, reload_settings, settings
from feldspar.context import FeldsparRuntime
from feldspar.engine import ScriptEngine, ScriptError
from feldspar.models import (
    AdapterKind,
    Conversation,
    Err,
    Message,
    ModelConfig,
    Ok,
    Role,
    Tool,
    ToolSchema,
)
from feldspar.repl import Repl
from feldspar.runtime import BackgroundLoop
from feldspar.stdlib import init_engine

__version__ = get_version()

__all__ = [
    # Runtime
    "FeldsparRuntime",
    "BackgroundLoop",
    # Host operations
    "configure_model",
    "prompt",
    "lookup_env",
    # Scripting
    "ScriptEngine",
    "ScriptError",
    "init_engine",
    "Repl",
    # Models
    "AdapterKind",
    "ModelConfig",
    "Conversation",
    "Message",
    "Role",
    "Tool",
    "ToolSchema",
    "Ok",
    "Err",
    # Exceptions
    "LLMError",
    "TokenLimitError",
    "RateLimitError",
    "APIConnectionError",
    "InvalidRequestError",
    "AuthenticationError",
    "classify_llm_error",
    # Configuration
    "FeldsparSettings",
    "settings",
    "get_settings",
    "reload_settings",
    # Version
    "__version__",
]
