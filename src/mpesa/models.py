"""Canonical Pydantic models for configuration and authentication.

The models fall into two groups:

**Configuration models** -- immutable values supplied at construction time
and optionally serialised as JSON in the user's config directory:
    :class:`Environment`, :class:`Endpoint`, :class:`MpesaConfig`, and
    :class:`Settings`.

**Wire models shared by the core** -- payloads the credential manager and
the error hierarchy parse:
    :class:`TokenResponse`, :class:`ErrorResponse`, and the cached
    :class:`Credential`.

Operation request/response payloads live in :mod:`mpesa.dto`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field


PRODUCTION_BASE_URL = "https://api.safaricom.et"
SANDBOX_BASE_URL = "https://apisandbox.safaricom.et"

DEFAULT_CONNECT_TIMEOUT = 5.0
DEFAULT_READ_TIMEOUT = 15.0
DEFAULT_WRITE_TIMEOUT = 10.0
DEFAULT_RETRY_BACKOFF = 0.5
DEFAULT_MAX_RETRIES = 3


class Environment(str, enum.Enum):
    """Provider environment; selects the base URL for every endpoint."""

    SANDBOX = "sandbox"
    PRODUCTION = "production"

    @property
    def base_url(self) -> str:
        if self is Environment.PRODUCTION:
            return PRODUCTION_BASE_URL
        return SANDBOX_BASE_URL


class Endpoint(str, enum.Enum):
    """Named provider endpoints. Values are the keys used in ``endpoints`` overrides."""

    AUTH = "auth"
    C2B_REGISTER = "c2b_register"
    C2B_PAYMENT = "c2b_payment"
    C2B_SIMULATE_PAYMENT = "c2b_simulate_payment"
    STK_PUSH = "stk_push"
    B2C_PAYMENT = "b2c_payment"
    TRANSACTION_STATUS = "transaction_status"
    TRANSACTION_REVERSAL = "transaction_reversal"
    ACCOUNT_BALANCE = "account_balance"


DEFAULT_PATHS: dict[Endpoint, str] = {
    Endpoint.AUTH: "/v1/token/generate?grant_type=client_credentials",
    Endpoint.C2B_REGISTER: "/v1/c2b-register-url/register",
    Endpoint.C2B_PAYMENT: "/c2b/payments",
    Endpoint.C2B_SIMULATE_PAYMENT: "/mpesa/b2c/simulatetransaction/v1/request",
    Endpoint.STK_PUSH: "/mpesa/stkpush/v3/processrequest",
    Endpoint.B2C_PAYMENT: "/mpesa/b2c/v1/paymentrequest",
    Endpoint.TRANSACTION_STATUS: "/mpesa/transactionstatus/v1/query",
    Endpoint.TRANSACTION_REVERSAL: "/mpesa/reversal/v2/request",
    Endpoint.ACCOUNT_BALANCE: "/mpesa/accountbalance/v2/query",
}
"""Default endpoint paths, appended to :attr:`Environment.base_url`."""


# --- Configuration ---


class MpesaConfig(BaseModel):
    """Immutable client configuration.

    Timeouts and the retry backoff are in seconds. ``max_retries`` is the
    total number of attempts a request may make for transport failures and
    retryable statuses; a single re-authentication after a 401 does not
    count against it.

    Any endpoint can be pointed elsewhere (a mock server, a regional
    gateway) by giving its full URL in ``endpoints``.

    Example::

        MpesaConfig(
            environment=Environment.PRODUCTION,
            max_retries=5,
            endpoints={Endpoint.STK_PUSH: "https://gw.example.com/stk"},
        )
    """

    model_config = ConfigDict(frozen=True)

    environment: Environment = Field(
        default=Environment.SANDBOX, description="sandbox or production"
    )
    connect_timeout: float = Field(
        default=DEFAULT_CONNECT_TIMEOUT, gt=0, description="Connect timeout in seconds"
    )
    read_timeout: float = Field(
        default=DEFAULT_READ_TIMEOUT, gt=0, description="Read timeout in seconds"
    )
    write_timeout: float = Field(
        default=DEFAULT_WRITE_TIMEOUT, gt=0, description="Write timeout in seconds"
    )
    retry_backoff: float = Field(
        default=DEFAULT_RETRY_BACKOFF,
        ge=0,
        description="Base backoff in seconds; attempt n sleeps retry_backoff * 2**n",
    )
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES, ge=1, description="Total attempts per request"
    )
    endpoints: dict[Endpoint, str] = Field(
        default_factory=dict, description="Full-URL overrides keyed by endpoint name"
    )

    def url_for(self, endpoint: Endpoint) -> str:
        """Return the URL for *endpoint*, honouring any override."""
        override = self.endpoints.get(endpoint)
        if override:
            return override
        return self.environment.base_url + DEFAULT_PATHS[endpoint]

    @property
    def auth_url(self) -> str:
        return self.url_for(Endpoint.AUTH)

    def httpx_timeout(self) -> httpx.Timeout:
        """Build the transport timeout; the pool wait shares the connect budget."""
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.write_timeout,
            pool=self.connect_timeout,
        )


class Settings(BaseModel):
    """On-disk settings file: where to find the credentials plus the client config.

    Credential *sources* are stored, never the secrets themselves. See
    :func:`~mpesa.config.resolve_credential` for the accepted formats.
    """

    consumer_key_source: str = Field(
        default="env:MPESA_CONSUMER_KEY",
        description="Credential source: env:VAR, file:/path, prompt",
    )
    consumer_secret_source: str = Field(
        default="env:MPESA_CONSUMER_SECRET",
        description="Credential source: env:VAR, file:/path, prompt",
    )
    config: MpesaConfig = Field(default_factory=MpesaConfig)


# --- Authentication ---


class TokenResponse(BaseModel):
    """Body returned by the token endpoint.

    Numeric strings are accepted for ``expires_in``. A lifetime of zero is
    rejected, since such a token is already expired when it arrives.
    """

    access_token: str = Field(min_length=1)
    expires_in: int = Field(gt=0)


@dataclass(frozen=True)
class Credential:
    """A bearer token and the clock reading at which it stops being valid.

    Replaced as a whole on every refresh; never mutated in place.
    """

    access_token: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


class ErrorResponse(BaseModel):
    """The provider's error payload, attached to errors for diagnostics."""

    model_config = ConfigDict(populate_by_name=True)

    request_id: Optional[str] = Field(default=None, alias="requestId")
    error_code: str = Field(alias="errorCode")
    error_message: str = Field(alias="errorMessage")
