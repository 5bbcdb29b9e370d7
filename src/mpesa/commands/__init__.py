"""Built-in ``mpesa`` sub-commands.

Each command module builds its :class:`~mpesa.sdk.MpesaSdk` through
:func:`build_sdk`, which applies the settings precedence chain with the
global CLI overrides stored on the Typer context.
"""

from __future__ import annotations

from typing import Any

import typer

from mpesa.config import resolve_settings
from mpesa.models import Settings
from mpesa.sdk import MpesaSdk


def cli_overrides(ctx: typer.Context) -> dict[str, Any]:
    """Return the explicit settings overrides captured by the root callback."""
    if ctx.obj is None:
        return {}
    return dict(ctx.obj.get("overrides", {}))


def resolve_cli_settings(ctx: typer.Context) -> Settings:
    return resolve_settings(**cli_overrides(ctx))


def build_sdk(ctx: typer.Context) -> MpesaSdk:
    """Create a client from the resolved settings.

    Raises:
        ConfigError: If the settings are invalid or a credential source
            cannot be resolved.
    """
    return MpesaSdk.from_settings(resolve_cli_settings(ctx))
