"""Field validators shared by the request models in :mod:`mpesa.dto.requests`.

Each ``require_*`` function returns the value unchanged when it passes and
raises :class:`ValueError` otherwise, so it can be called directly from a
Pydantic ``field_validator``; Pydantic wraps the message in a
:class:`~pydantic.ValidationError` naming the offending field.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

# Patterns must match the whole value; ASCII digits only.
_NUMERIC = re.compile(r"\d+", re.ASCII)
_BASE64 = re.compile(r"[A-Za-z0-9+/=]+")
_SHORT_CODE = re.compile(r"\d{4,9}", re.ASCII)
# Ethiopian (2517xxxxxxxx) or Kenyan (2547xxxxxxxx) MSISDNs.
_PHONE_NUMBER = re.compile(r"2517\d{8}|2547\d{8}", re.ASCII)


def require_non_empty(value: str, field_name: str) -> str:
    if value is None or not value.strip():
        raise ValueError(f"{field_name} must not be empty.")
    return value


def require_numeric(value: str, field_name: str) -> str:
    if not _NUMERIC.fullmatch(value):
        raise ValueError(f"{field_name} must be numeric.")
    return value


def require_base64(value: str, field_name: str) -> str:
    if not _BASE64.fullmatch(value):
        raise ValueError(f"{field_name} must be a valid base64 encoded string.")
    return value


def require_length(value: str, min_length: int, max_length: int, field_name: str) -> str:
    if not min_length <= len(value) <= max_length:
        raise ValueError(
            f"{field_name} must be between {min_length} and {max_length} characters long."
        )
    return value


def require_url(value: str, field_name: str) -> str:
    """Accept absolute ``http``/``https`` URLs with a host."""
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"{field_name} must be a valid URL.")
    return value


def require_phone_number(value: str, field_name: str) -> str:
    if not _PHONE_NUMBER.fullmatch(value):
        raise ValueError(
            f"{field_name} must be a valid Ethiopian (2517xxxxxxxx) "
            "or Kenyan (2547xxxxxxxx) number."
        )
    return value


def require_short_code(value: str, field_name: str) -> str:
    if not _SHORT_CODE.fullmatch(value):
        raise ValueError(f"{field_name} must be a valid business short code (4-9 digits).")
    return value
