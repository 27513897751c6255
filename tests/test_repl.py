"""Tests for the interactive loop and file loading."""

import io
from unittest.mock import Mock

import pytest
from prompt_toolkit.history import FileHistory, InMemoryHistory
from rich.console import Console

from feldspar.engine import ScriptEngine
from feldspar.repl import Repl, load_file, open_history


class FakeSession:
    """Prompt session that replays scripted input.

    Exception classes or instances in the script are raised instead of
    returned; running out of input raises EOFError.
    """

    def __init__(self, lines):
        self._lines = list(lines)
        self.prompts = 0

    def prompt(self, message=None):
        self.prompts += 1
        if not self._lines:
            raise EOFError
        line = self._lines.pop(0)
        if isinstance(line, BaseException) or (isinstance(line, type) and issubclass(line, BaseException)):
            raise line
        return line


def make_console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, highlight=False, soft_wrap=True), buffer


@pytest.fixture
def consoles():
    return make_console(), make_console()


def make_repl(lines, consoles, engine=None):
    (console, _), (err_console, _) = consoles
    engine = engine or ScriptEngine(output=io.StringIO())
    return Repl(engine, session=FakeSession(lines), console=console, err_console=err_console)


def outputs(consoles) -> tuple[str, str]:
    (_, out), (_, err) = consoles
    return out.getvalue(), err.getvalue()


class TestLoop:
    """Test the read-eval-print loop."""

    def test_prints_values(self, consoles):
        make_repl(["1 + 1", "'text'"], consoles).run()
        out, _ = outputs(consoles)
        assert "=> 2" in out
        assert "=> text" in out

    def test_statements_print_nothing(self, consoles):
        make_repl(["x = 1"], consoles).run()
        out, _ = outputs(consoles)
        assert "=>" not in out

    def test_errors_go_to_stderr_and_loop_continues(self, consoles):
        make_repl(["1 / 0", "2 + 2"], consoles).run()
        out, err = outputs(consoles)
        assert "Error: ZeroDivisionError" in err
        assert "=> 4" in out

    def test_blank_lines_ignored(self, consoles):
        repl = make_repl(["", "   ", "3"], consoles)
        repl.run()
        out, err = outputs(consoles)
        assert out.count("=>") == 1
        assert err == ""

    def test_interrupt_continues(self, consoles):
        repl = make_repl([KeyboardInterrupt, "5"], consoles)
        repl.run()
        out, _ = outputs(consoles)
        assert "^C" in out
        assert "=> 5" in out

    def test_interrupt_while_evaluating_continues(self, consoles):
        engine = ScriptEngine(output=io.StringIO())
        engine.register_fn("boom", Mock(side_effect=KeyboardInterrupt()))
        repl = make_repl(["boom()", "1 + 1", EOFError], consoles, engine=engine)

        repl.run()

        out, _ = outputs(consoles)
        assert "^C" in out
        assert "=> 2" in out
        assert repl.session.prompts == 3

    def test_interrupt_while_loading_continues(self, consoles, tmp_path):
        script = tmp_path / "slow.py"
        script.write_text("boom()\n", encoding="utf-8")
        engine = ScriptEngine(output=io.StringIO())
        engine.register_fn("boom", Mock(side_effect=KeyboardInterrupt()))
        repl = make_repl([f":load {script}", "3"], consoles, engine=engine)

        repl.run()

        out, _ = outputs(consoles)
        assert "^C" in out
        assert f"Loaded {script}" not in out
        assert "=> 3" in out

    def test_eof_exits(self, consoles):
        repl = make_repl([EOFError, "never read"], consoles)
        repl.run()
        assert repl.session.prompts == 1

    def test_quit_exits(self, consoles):
        repl = make_repl([":q", "never read"], consoles)
        repl.run()
        assert repl.session.prompts == 1

    def test_long_quit_exits(self, consoles):
        repl = make_repl([":quit", "never read"], consoles)
        repl.run()
        assert repl.session.prompts == 1


class TestCommands:
    """Test colon-commands."""

    @pytest.mark.parametrize("command", [":help", ":h"])
    def test_help(self, consoles, command):
        repl = make_repl([], consoles)
        assert repl.handle_command(command) is False
        out, _ = outputs(consoles)
        assert ":load <file>" in out
        assert "prompt(history, message)" in out

    def test_unknown(self, consoles):
        repl = make_repl([], consoles)
        assert repl.handle_command(":frobnicate now") is False
        _, err = outputs(consoles)
        assert "Unknown command: frobnicate. Type :help for available commands." in err

    @pytest.mark.parametrize("command", [":load", ":l"])
    def test_load_without_argument(self, consoles, command):
        repl = make_repl([], consoles)
        repl.handle_command(command)
        _, err = outputs(consoles)
        assert "Usage: :load <file>" in err

    @pytest.mark.parametrize("command", [":load", ":l"])
    def test_load_runs_file(self, consoles, tmp_path, command):
        script = tmp_path / "setup.py"
        script.write_text("greeting = 'hello'\n", encoding="utf-8")
        engine = ScriptEngine(output=io.StringIO())
        repl = make_repl([], consoles, engine=engine)

        repl.handle_command(f"{command} {script}")

        out, _ = outputs(consoles)
        assert f"Loaded {script}" in out
        assert engine.run("greeting") == ["hello"]


class TestLoadFile:
    """Test loading script files."""

    def test_missing_file(self, consoles, tmp_path):
        (console, _), (err_console, _) = consoles
        missing = tmp_path / "missing.py"
        assert load_file(ScriptEngine(), missing, console, err_console) is False
        _, err = outputs(consoles)
        assert f"Error reading {missing}" in err

    def test_script_error(self, consoles, tmp_path):
        (console, _), (err_console, _) = consoles
        script = tmp_path / "broken.py"
        script.write_text("x = 1\nundefined_name\n", encoding="utf-8")
        assert load_file(ScriptEngine(), script, console, err_console) is False
        _, err = outputs(consoles)
        assert f"Error in {script}" in err
        assert "NameError" in err

    def test_success(self, consoles, tmp_path):
        (console, _), (err_console, _) = consoles
        script = tmp_path / "ok.py"
        script.write_text("def greet(name):\n    return 'hi ' + name\n", encoding="utf-8")
        engine = ScriptEngine()
        assert load_file(engine, script, console, err_console) is True
        assert engine.run("greet('there')") == ["hi there"]


class TestHistory:
    """Test history storage selection."""

    def test_none_is_in_memory(self):
        assert isinstance(open_history(None), InMemoryHistory)

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "feldspar" / "history.txt"
        history = open_history(path)
        assert isinstance(history, FileHistory)
        assert path.parent.is_dir()

    def test_history_persists(self, tmp_path):
        path = tmp_path / "feldspar" / "history.txt"
        open_history(path).store_string("x = 1")
        assert list(open_history(path).load_history_strings()) == ["x = 1"]
