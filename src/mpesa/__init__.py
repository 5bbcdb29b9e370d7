"""mpesa -- Python client for the M-Pesa (Daraja-style) mobile-money API.

The package hides the provider's authentication, retry and error
conventions behind one facade. Callers build a validated request model,
pass it to :class:`MpesaSdk`, and get back a parsed acknowledgement or a
typed exception.

Typical usage::

    from mpesa import MpesaConfig, MpesaSdk
    from mpesa.dto import StkPushRequest

    with MpesaSdk(key, secret, MpesaConfig()) as sdk:
        ack = sdk.request_stk_push(StkPushRequest(...))

Modules:
    sdk: The :class:`MpesaSdk` facade.
    auth: Bearer-token caching and refresh.
    client: Authenticated request execution and the retry state machine.
    services: One service per business area, with error mapping.
    dto: Request, response and callback payload models.
    models: Configuration and authentication models.
    config: XDG-aware settings files and credential sources.
    exceptions: Exception hierarchy with exit-code mapping.
    app: The ``mpesa`` command-line tool.
"""

__version__ = "0.1.0"

from mpesa.exceptions import (  # noqa: E402
    AuthenticationError,
    ConfigError,
    ErrorCode,
    HttpError,
    MpesaError,
    NetworkError,
    RequestCancelledError,
    UnexpectedResponseError,
)
from mpesa.models import Endpoint, Environment, MpesaConfig  # noqa: E402
from mpesa.sdk import MpesaSdk  # noqa: E402

__all__ = [
    "AuthenticationError",
    "ConfigError",
    "Endpoint",
    "Environment",
    "ErrorCode",
    "HttpError",
    "MpesaConfig",
    "MpesaError",
    "MpesaSdk",
    "NetworkError",
    "RequestCancelledError",
    "UnexpectedResponseError",
    "__version__",
]
