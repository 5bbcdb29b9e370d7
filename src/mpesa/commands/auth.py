"""Auth commands -- check that the configured credentials work.

Provides the ``mpesa auth`` sub-command group::

    mpesa auth test                 # fetch a token, report success
    mpesa auth token --show-token   # fetch a token and print it
"""

from __future__ import annotations

from datetime import datetime, timezone

import typer

from mpesa import commands
from mpesa.exceptions import MpesaError
from mpesa.output import error, get_output, info, success, suggest


auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("test")
def auth_test(ctx: typer.Context) -> None:
    """Request a fresh access token from the token endpoint.

    Exits with the error's exit code (3 for rejected credentials, 6 for
    network failures) when the token cannot be obtained.

    Example::

        mpesa auth test
        mpesa --environment production auth test
    """
    try:
        with commands.build_sdk(ctx) as sdk:
            info(f"Testing credentials against {sdk.config.auth_url.split('?', 1)[0]}")
            sdk.test_auth()
    except MpesaError as exc:
        error(f"Auth test failed: {exc}")
        suggest("Check MPESA_CONSUMER_KEY / MPESA_CONSUMER_SECRET or run: mpesa config show")
        raise typer.Exit(code=exc.exit_code) from None
    success("Authentication successful.")


@auth_app.command("token")
def auth_token(
    ctx: typer.Context,
    show_token: bool = typer.Option(
        False, "--show-token", help="Print the access token itself."
    ),
) -> None:
    """Fetch an access token and print its expiry.

    The token is masked unless ``--show-token`` is given.

    Example::

        mpesa auth token
        mpesa --json auth token --show-token
    """
    try:
        with commands.build_sdk(ctx) as sdk:
            sdk.credentials.refresh()
            credential = sdk.credentials.credential
            environment = sdk.config.environment.value
    except MpesaError as exc:
        error(f"Could not obtain a token: {exc}")
        raise typer.Exit(code=exc.exit_code) from None

    assert credential is not None  # refresh() succeeded
    token = credential.access_token
    if not show_token:
        token = token[:4] + "..." if len(token) > 4 else "..."
    expires_at = datetime.fromtimestamp(credential.expires_at, tz=timezone.utc)

    get_output().print_table(
        ["Field", "Value"],
        [
            ["Environment", environment],
            ["Access Token", token],
            ["Expires At", expires_at.isoformat()],
        ],
        title="Access Token",
    )
