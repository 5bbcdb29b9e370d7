"""Config commands -- inspect and initialise the settings file.

Provides the ``mpesa config`` sub-command group. Settings hold credential
*sources* (``env:VAR``, ``file:/path``, ``prompt``) and the client config;
secrets are never written to disk.
"""

from __future__ import annotations

import typer

from mpesa import commands
from mpesa.exceptions import ConfigError
from mpesa.exit_codes import EXIT_INVALID_USAGE
from mpesa.output import error, format_response, info, print_data, success, suggest


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective settings after applying every override.

    Example::

        mpesa config show
        MPESA_MAX_RETRIES=5 mpesa --json config show
    """
    from mpesa.config import user_config_path

    try:
        settings = commands.resolve_cli_settings(ctx)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(f"Config file: {user_config_path()}")
    format_response(settings.model_dump(mode="json"))


@config_app.command("path")
def config_path() -> None:
    """Print the location of the user settings file."""
    from mpesa.config import user_config_path

    print_data(str(user_config_path()))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file."),
) -> None:
    """Write a settings file with default values.

    Example::

        mpesa config init
        mpesa config init --force
    """
    from mpesa.config import save_settings, user_config_path
    from mpesa.models import Settings

    path = user_config_path()
    if path.is_file() and not force:
        error(f"Settings file already exists: {path}")
        suggest("Overwrite it: mpesa config init --force")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    save_settings(Settings(), path)
    success(f"Wrote default settings to {path}")
    suggest("Export MPESA_CONSUMER_KEY and MPESA_CONSUMER_SECRET, then run: mpesa auth test")
