"""Tests for host functions as scripts see them."""

import io
from unittest.mock import AsyncMock, patch

import pytest
from conftest import make_response

from feldspar.engine import ScriptError
from feldspar.models import AdapterKind, Tool, ToolSchema
from feldspar.stdlib import init_engine, tool_new


@pytest.fixture
def engine(runtime):
    return init_engine(runtime)


class TestRegistry:
    """Test which functions are registered."""

    def test_all_host_functions_registered(self, engine):
        assert set(engine.host_functions) == {
            "prompt",
            "configure_model",
            "lookup_env",
            "tool_new",
            "tool_describe",
            "is_tool",
            "tool_schema_string",
            "tool_schema_number",
            "tool_schema_bool",
        }

    def test_registers_into_given_engine(self, runtime):
        from feldspar.engine import ScriptEngine

        existing = ScriptEngine(output=io.StringIO())
        assert init_engine(runtime, existing) is existing


class TestChatFunctions:
    """Test configure_model and prompt from scripts."""

    def test_configure_model_updates_runtime(self, engine, runtime, capsys):
        assert engine.run('configure_model("http://localhost:9999", "tok", "test-model", "ollama")') == []
        config = runtime.snapshot()
        assert config.adapter is AdapterKind.OLLAMA
        assert config.model == "test-model"
        assert "Configured: adapter=ollama" in capsys.readouterr().out

    def test_prompt_returns_string(self, engine):
        async def echo_turn_count(**kwargs):
            return make_response(str(len(kwargs["messages"])))

        with patch("feldspar.api.any_llm_acompletion", new_callable=AsyncMock) as mock_completion:
            mock_completion.side_effect = echo_turn_count
            result = engine.run('prompt([["user", "Hello"], ["bogus", "ignored"], ["assistant", "Hi"]], "Continue")')

        assert result == ["3"]

    def test_prompt_failure_does_not_raise(self, engine):
        """A failed request is a string value, so the script keeps going."""
        with patch("feldspar.api.any_llm_acompletion", new_callable=AsyncMock) as mock_completion:
            mock_completion.side_effect = ConnectionError("refused")
            result = engine.run('reply = prompt([], "hi")\nreply.startswith("Error: ")')

        assert result == [True]

    def test_history_built_in_script(self, engine):
        with patch("feldspar.api.any_llm_acompletion", new_callable=AsyncMock) as mock_completion:
            mock_completion.return_value = make_response("Paris")
            engine.run(
                "history = []\n"
                'answer = prompt(history, "Capital of France?")\n'
                'history.append(["user", "Capital of France?"])\n'
                'history.append(["assistant", answer])\n'
            )
            engine.run('prompt(history, "And of Italy?")')

        messages = mock_completion.call_args.kwargs["messages"]
        assert [m["content"] for m in messages] == ["Capital of France?", "Paris", "And of Italy?"]


class TestLookupEnv:
    """Test lookup_env from scripts."""

    def test_set_variable(self, engine, monkeypatch):
        monkeypatch.setenv("FELDSPAR_TEST_VAR", "abc")
        assert engine.run('r = lookup_env("FELDSPAR_TEST_VAR")\n[r.ok, r.value]') == [[True, "abc"]]

    def test_unset_variable_can_be_branched_on(self, engine, monkeypatch):
        monkeypatch.delenv("DEFINITELY_UNSET_VAR_xyz", raising=False)
        source = 'r = lookup_env("DEFINITELY_UNSET_VAR_xyz")\n"missing" if not r.ok else r.value'
        assert engine.run(source) == ["missing"]

    def test_unwrap_or(self, engine, monkeypatch):
        monkeypatch.delenv("DEFINITELY_UNSET_VAR_xyz", raising=False)
        assert engine.run('lookup_env("DEFINITELY_UNSET_VAR_xyz").unwrap_or("fallback")') == ["fallback"]

    def test_unwrap_err_is_script_error(self, engine, monkeypatch):
        monkeypatch.delenv("DEFINITELY_UNSET_VAR_xyz", raising=False)
        with pytest.raises(ScriptError, match="environment variable not found"):
            engine.run('lookup_env("DEFINITELY_UNSET_VAR_xyz").unwrap()')


class TestToolFunctions:
    """Test tool descriptors from scripts."""

    def test_tool_new_and_describe(self, engine):
        engine.run(
            't = tool_new("get_weather", "Look up the weather", '
            '[["city", tool_schema_string()], ["days", tool_schema_number()]], "weather_handler")'
        )
        (text,) = engine.run("tool_describe(t)")
        assert "get_weather" in text
        assert "Look up the weather" in text
        assert '{"city": <string>},' in text
        assert '{"days": <number>},' in text

    def test_is_tool(self, engine):
        engine.run('t = tool_new("n", "d", [], "h")')
        assert engine.run("is_tool(t)") == [True]
        assert engine.run('is_tool("n")') == [False]

    def test_tool_fields_readable(self, engine):
        engine.run('t = tool_new("n", "d", [["flag", tool_schema_bool()]], "h")')
        assert engine.run("[t.name, t.description, t.handler]") == [["n", "d", "h"]]

    def test_tool_new_accepts_tuples(self):
        tool = tool_new("n", "d", (("x", ToolSchema.NUMBER),), "h")
        assert isinstance(tool, Tool)
        assert tool.parameters == (("x", ToolSchema.NUMBER),)

    def test_invalid_schema_tag_is_script_error(self, engine):
        with pytest.raises(ScriptError):
            engine.run('tool_new("n", "d", [["x", "not-a-tag"]], "h")')
