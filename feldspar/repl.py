"""Interactive read-eval-print loop.

Reads lines with prompt_toolkit (line editing plus persistent history),
dispatches ``:``-prefixed commands, and runs everything else through the
script engine.

Commands:
    :help         (:h)  Show help
    :load <file>  (:l)  Load a script file
    :quit         (:q)  Exit the REPL
"""

from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.history import FileHistory, History, InMemoryHistory
from rich.console import Console
from rich.text import Text

from feldspar.engine import ScriptEngine, ScriptError
from feldspar.logging_config import get_logger

logger = get_logger(__name__)

PROMPT = FormattedText([("fg:ansicyan", "λ > ")])

HELP_TEXT = """\
Commands:
  :help         (:h)  Show this help
  :load <file>  (:l)  Load a script file
  :quit         (:q)  Exit the REPL
Functions:
  configure_model(url, token, model, adapter)        Set the model target
  prompt(history, message)                           Prompt the model; history is [[role, content], ...]
  lookup_env(name)                                   Read an environment variable (Ok/Err)
  tool_new(name, description, schema, handler)       Build a tool descriptor
  tool_describe(tool)                                Render a tool descriptor
  tool_schema_string() / _number() / _bool()         Parameter type tags"""


def open_history(path: Path | None) -> History:
    """Open the persistent history file, creating its directory if needed.

    Falls back to in-memory history when ``path`` is None or unusable.
    """
    if path is None:
        return InMemoryHistory()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"History disabled, cannot create {path.parent}: {e}")
        return InMemoryHistory()
    return FileHistory(str(path))


def load_file(engine: ScriptEngine, path: str | Path, console: Console, err_console: Console) -> bool:
    """Read a script file and run it.

    Failures are reported on ``err_console``; nothing is raised.

    Returns:
        True if the file was read and ran without error
    """
    try:
        contents = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        err_console.print(f"Error reading {path}: {e}", markup=False)
        return False

    try:
        engine.run(contents, filename=str(path))
    except ScriptError as e:
        err_console.print(f"Error in {path}: {e}", markup=False)
        return False

    console.print(f"Loaded {path}", markup=False)
    return True


class Repl:
    """The interactive loop around a script engine."""

    def __init__(
        self,
        engine: ScriptEngine,
        session: PromptSession | None = None,
        history_path: Path | None = None,
        console: Console | None = None,
        err_console: Console | None = None,
    ):
        """Initialize the REPL.

        Args:
            engine: Engine that evaluates input lines
            session: Prompt session to read from (built around ``history_path`` if omitted)
            history_path: Persistent history file; None keeps history in memory
            console: Console for results
            err_console: Console for errors
        """
        self.engine = engine
        self.session = session or PromptSession(history=open_history(history_path))
        self.console = console or Console(highlight=False, soft_wrap=True)
        self.err_console = err_console or Console(stderr=True, highlight=False, soft_wrap=True)

    def print_help(self) -> None:
        self.console.print(HELP_TEXT, markup=False)

    def handle_command(self, line: str) -> bool:
        """Run a ``:`` command.

        Returns:
            True if the REPL should exit
        """
        parts = line[1:].split(" ", 1)
        command = parts[0]
        arg = parts[1].strip() if len(parts) > 1 else ""

        if command in ("h", "help"):
            self.print_help()
        elif command in ("q", "quit"):
            return True
        elif command in ("l", "load"):
            if not arg:
                self.err_console.print("Usage: :load <file>", markup=False)
            else:
                load_file(self.engine, arg, self.console, self.err_console)
        else:
            self.err_console.print(
                f"Unknown command: {command}. Type :help for available commands.",
                markup=False,
            )
        return False

    def evaluate(self, line: str) -> None:
        """Run one line of script and print its values or error."""
        try:
            values = self.engine.run(line)
        except ScriptError as e:
            self.err_console.print(Text.assemble(("Error:", "red"), f" {e}"))
            return

        for value in values:
            rendered = value if isinstance(value, str) else repr(value)
            self.console.print(Text.assemble(("=>", "magenta"), f" {rendered}"))

    def run(self) -> None:
        """Read and evaluate lines until :quit or end of input."""
        while True:
            try:
                line = self.session.prompt(PROMPT)
            except KeyboardInterrupt:
                self.console.print("^C", markup=False)
                continue
            except EOFError:
                break

            line = line.strip()
            if not line:
                continue

            # Ctrl-C while a line runs abandons that line only
            try:
                if line.startswith(":"):
                    if self.handle_command(line):
                        break
                    continue
                self.evaluate(line)
            except KeyboardInterrupt:
                self.console.print("^C", markup=False)

        logger.debug("REPL exited")
