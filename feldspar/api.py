"""Host operations exposed to scripts.

This module implements the operations scripts call through the function
registry: pointing the runtime at a model, prompting it with a conversation,
and reading environment variables.

Core Components:
    - configure_model: Replace the runtime's model target
    - prompt: Send a conversation to the model and return its reply as text
    - lookup_env: Read an environment variable as an Ok/Err result

Exception Hierarchy:
    - LLMError (base)
        - TokenLimitError: Token/context length exceeded
        - RateLimitError: Rate limit hit
        - APIConnectionError: Network/connection issues
        - InvalidRequestError: Bad request parameters
        - AuthenticationError: Authentication failed

These exceptions never reach scripts. ``prompt`` classifies every failure,
logs it and returns an ``"Error: ..."`` string instead, so a failed request
cannot abort a running script or the REPL session.

Example:
    >>> from feldspar.context import FeldsparRuntime
    >>> from feldspar.api import configure_model, prompt
    >>>
    >>> with FeldsparRuntime() as runtime:
    ...     configure_model(runtime, "http://localhost:11434", "", "llama3", "ollama")
    ...     print(prompt(runtime, [["system", "Answer briefly."]], "What is 2+2?"))
"""

import asyncio
import os
import time
from collections.abc import Iterable, Sequence

from any_llm import acompletion as any_llm_acompletion
from any_llm.types.completion import ChatCompletion

from feldspar.context import FeldsparRuntime
from feldspar.logging_config import get_logger
from feldspar.models.config import AdapterKind, ModelConfig
from feldspar.models.conversation import Conversation, Role
from feldspar.models.result import Err, Ok, Result

logger = get_logger(__name__)

NO_RESPONSE = "No response"

# SDK clients that retry failed requests unless built with max_retries=0
NO_RETRY_CLIENT_ARGS = {"max_retries": 0}
RETRYING_CLIENT_ADAPTERS = frozenset({AdapterKind.OPENAI, AdapterKind.ANTHROPIC, AdapterKind.GROQ})


# ============================================================================
# Exception Classes
# ============================================================================


class LLMError(Exception):
    """Base exception for LLM-related errors."""

    pass


class TokenLimitError(LLMError):
    """Raised when token limit is exceeded."""

    pass


class RateLimitError(LLMError):
    """Raised when rate limit is hit."""

    pass


class APIConnectionError(LLMError):
    """Raised when there's a connection issue with the API."""

    pass


class InvalidRequestError(LLMError):
    """Raised when the request is invalid (bad params, etc)."""

    pass


class AuthenticationError(LLMError):
    """Raised when authentication fails."""

    pass


# ============================================================================
# Error Classification
# ============================================================================


def classify_llm_error(error: Exception) -> LLMError:
    """Classify an error from any_llm into our custom exception types.

    This function examines the error message and type to determine what kind
    of error occurred. The result is only used for reporting: every class is
    rendered the same way by ``prompt``.
    """
    if isinstance(error, LLMError):
        return error

    error_msg = str(error).lower()
    error_type = type(error).__name__

    # Token/context length errors
    if any(
        keyword in error_msg
        for keyword in [
            "context length",
            "token limit",
            "maximum context",
            "too many tokens",
            "context_length_exceeded",
            "max_tokens",
        ]
    ):
        return TokenLimitError(f"Token limit exceeded: {error}")

    # Rate limiting errors
    if any(
        keyword in error_msg
        for keyword in [
            "rate limit",
            "rate_limit",
            "too many requests",
            "quota exceeded",
            "resource exhausted",
            "throttled",
            "429",
        ]
    ):
        return RateLimitError(f"Rate limit hit: {error}")

    # Connection/network errors
    if isinstance(error, (ConnectionError, TimeoutError)) or any(
        keyword in error_msg
        for keyword in [
            "connection",
            "timeout",
            "timed out",
            "network",
            "unreachable",
            "503",
            "502",
            "504",
        ]
    ):
        return APIConnectionError(f"API connection error: {error}")

    # Authentication errors
    if any(
        keyword in error_msg
        for keyword in [
            "unauthorized",
            "invalid api key",
            "api key",
            "authentication",
            "auth",
            "401",
            "403",
        ]
    ):
        return AuthenticationError(f"Authentication failed: {error}")

    # Invalid request errors
    if any(
        keyword in error_msg
        for keyword in [
            "invalid",
            "bad request",
            "400",
            "validation",
        ]
    ):
        return InvalidRequestError(f"Invalid request: {error}")

    return LLMError(f"LLM error ({error_type}): {error}")


# ============================================================================
# Helper Functions
# ============================================================================


def _extract_token_usage(response: ChatCompletion) -> dict[str, int] | None:
    """Extract token usage from a ChatCompletion response safely.

    Returns:
        Dictionary with 'prompt', 'completion', and 'total' token counts,
        or None if usage information is not available.
    """
    if not hasattr(response, "usage") or not response.usage:
        return None

    usage = response.usage
    prompt_tokens = getattr(usage, "prompt_tokens", None)
    completion_tokens = getattr(usage, "completion_tokens", None)
    total_tokens = getattr(usage, "total_tokens", None)

    return {
        "prompt": int(prompt_tokens) if isinstance(prompt_tokens, (int, float)) else 0,
        "completion": int(completion_tokens) if isinstance(completion_tokens, (int, float)) else 0,
        "total": int(total_tokens) if isinstance(total_tokens, (int, float)) else 0,
    }


def _extract_text(response: ChatCompletion) -> str | None:
    """Return the text content of the first choice, or None if there is none."""
    choices = getattr(response, "choices", None)
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    return content if isinstance(content, str) else None


def _client_args(config: ModelConfig) -> dict | None:
    """Constructor arguments for the provider client, turning off SDK-level retries."""
    if config.adapter in RETRYING_CLIENT_ADAPTERS:
        return dict(NO_RETRY_CLIENT_ARGS)
    return None


# ============================================================================
# LLM Call
# ============================================================================


async def _safe_llm_call(
    messages: list[dict],
    config: ModelConfig,
    timeout: float | None = None,
) -> ChatCompletion:
    """Make a single LLM call against the given target, classifying failures.

    Args:
        messages: List of message dictionaries
        config: Snapshot of the model target to call
        timeout: Request timeout in seconds (None leaves it to the client)

    Raises:
        LLMError: Any failure, classified
    """
    start_time = time.time()
    logger.debug(
        f"Making LLM call: model={config.model_id}, url={config.url}, "
        f"message_count={len(messages)}, timeout={timeout}"
    )

    try:
        call = any_llm_acompletion(
            model=config.model_id,
            messages=messages,
            api_key=config.token or None,
            api_base=config.url or None,
            client_args=_client_args(config),
        )
        if timeout is not None:
            response = await asyncio.wait_for(call, timeout=timeout)
        else:
            response = await call
    except TimeoutError as e:
        elapsed_time = time.time() - start_time
        logger.error(
            f"LLM call timed out after {elapsed_time:.3f}s (timeout={timeout}s): model={config.model_id}",
            exc_info=True,
        )
        raise APIConnectionError(f"Request timed out after {timeout}s") from e
    except Exception as e:
        elapsed_time = time.time() - start_time
        classified_error = classify_llm_error(e)
        logger.error(
            f"LLM call failed after {elapsed_time:.3f}s: model={config.model_id}, error={classified_error}, "
            f"error_type={type(classified_error).__name__}",
            exc_info=True,
        )
        raise classified_error from e

    elapsed_time = time.time() - start_time
    tokens_used = _extract_token_usage(response)
    if tokens_used:
        logger.info(
            f"LLM call completed: model={config.model_id}, latency={elapsed_time:.3f}s, "
            f"tokens={tokens_used['total']} (prompt={tokens_used['prompt']}, "
            f"completion={tokens_used['completion']})"
        )
    else:
        logger.info(f"LLM call completed: model={config.model_id}, latency={elapsed_time:.3f}s")
    return response


# ============================================================================
# Host Operations
# ============================================================================


def configure_model(runtime: FeldsparRuntime, url: str, token: str, model: str, adapter: str) -> None:
    """Point the runtime at a new model target.

    All four fields are replaced together. An unknown adapter name falls back
    to ``openai``.

    Args:
        runtime: Runtime whose target is replaced
        url: Endpoint base URL
        token: Bearer credential (empty to let the provider read its own env var)
        model: Model name as the provider knows it
        adapter: One of openai, anthropic, ollama, gemini, groq, cohere
    """
    config = ModelConfig.from_names(url, token, model, adapter)
    runtime.replace(config)
    print(f"Configured: adapter={config.adapter.value}, model={config.model}, url={config.url}")


def prompt(runtime: FeldsparRuntime, history: Iterable[Sequence[str]], message: str) -> str:
    """Send a conversation plus a new user message to the model.

    Blocks the calling thread until the request finishes. Each call is a new
    request; nothing is retried.

    Args:
        runtime: Runtime providing the model target and background loop
        history: ``[role, content]`` entries, oldest first; malformed entries are dropped
        message: The new user message, sent as the final turn

    Returns:
        The model's reply, ``"No response"`` if the reply has no text, or
        ``"Error: <message>"`` if the request failed
    """
    config = runtime.snapshot()

    conversation = Conversation.from_history(history)
    conversation.add_message(Role.USER, message)

    try:
        response = runtime.loop.run(
            _safe_llm_call(
                conversation.messages_dict,
                config,
                timeout=runtime.settings.request_timeout,
            )
        )
        text = _extract_text(response)
    except Exception as e:
        return f"Error: {classify_llm_error(e)}"

    return text if text is not None else NO_RESPONSE


def lookup_env(name: str) -> Result:
    """Look up an environment variable by exact name.

    Returns:
        Ok with the value, or Err describing why it is unavailable
    """
    value = os.environ.get(name)
    if value is None:
        return Err(error="environment variable not found")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return Err(error=f"environment variable was not valid unicode: {value!r}")
    return Ok(value=value)
