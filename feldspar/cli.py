"""feldspar command-line interface.

Starts the scripting REPL, optionally running a script file first.

Usage:
    feldspar                 Start the REPL
    feldspar setup.py        Run setup.py, then start the REPL
    python -m feldspar ...   Same as above
"""

from pathlib import Path

import click
from rich.console import Console

from feldspar._version import get_version
from feldspar.config import get_settings
from feldspar.context import FeldsparRuntime
from feldspar.logging_config import get_logger, setup_logging
from feldspar.repl import Repl, load_file
from feldspar.stdlib import init_engine

logger = get_logger(__name__)

console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)


@click.command()
@click.argument("script", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.option("--log-level", "-L", default=None, help="Console log level (defaults to settings)")
@click.option("--no-history", is_flag=True, help="Do not read or write the persistent REPL history")
@click.version_option(get_version(), prog_name="feldspar")
def cli(script: Path | None, log_level: str | None, no_history: bool) -> None:
    """Interactive scripting REPL with language-model host functions.

    If SCRIPT is given it is loaded first; the REPL starts whether or not it
    loaded cleanly.
    """
    settings = get_settings()
    setup_logging(settings, log_level=log_level)

    with FeldsparRuntime(settings=settings) as runtime:
        engine = init_engine(runtime)
        console.print("Type :help for commands\n", markup=False)

        if script is not None:
            try:
                load_file(engine, script, console, err_console)
            except KeyboardInterrupt:
                console.print("^C", markup=False)

        history_path = None if no_history else settings.history_path
        logger.debug(f"Starting REPL, history={history_path}")
        Repl(engine, history_path=history_path, console=console, err_console=err_console).run()


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
