"""Typer application and CLI entry point for ``mpesa``.

This module wires the top-level Typer application and registers the
built-in sub-commands (``auth``, ``config``, ``call``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a signal handler and invokes the Typer
app. :class:`~mpesa.exceptions.MpesaError` subclasses become clean exits
with their exit code; any other exception is written to a crash log under
the data directory.

See Also:
    :mod:`mpesa.config`: Settings resolution used by every command.
    :mod:`mpesa.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from mpesa import __version__
from mpesa.commands.auth import auth_app
from mpesa.commands.call import call_command
from mpesa.commands.config import config_app
from mpesa.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE
from mpesa.models import Environment


app = typer.Typer(
    name="mpesa",
    help="Call the M-Pesa API from the command line.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(auth_app, name="auth", help="Check API credentials.")
app.add_typer(config_app, name="config", help="Settings file management.")
app.command("call")(call_command)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"mpesa {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    environment: Optional[Environment] = typer.Option(
        None, "--environment", "-e", help="Override the configured environment."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output and request logging."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~mpesa.output.OutputManager` and the
    ``mpesa`` logger from the CLI flags, and stores explicit settings
    overrides in ``ctx.obj`` for :func:`mpesa.commands.build_sdk`.
    """
    from mpesa.output import OutputFormat, OutputManager, configure_logging, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {"environment": environment.value if environment else None}
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback under the data directory and return its path."""
    from mpesa.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(f"{type(exc).__name__}: {exc}\n\n{traceback.format_exc()}")
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``mpesa`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from mpesa.exceptions import MpesaError
        from mpesa.output import error

        if isinstance(exc, MpesaError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
