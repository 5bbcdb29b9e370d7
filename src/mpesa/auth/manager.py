"""Credential manager -- owns and refreshes the provider's bearer token.

:class:`CredentialManager` performs the client-credentials exchange against
the configured token endpoint (HTTP Basic over the consumer key and secret)
and caches the resulting :class:`~mpesa.models.Credential` until the clock
reaches its expiry.

The cached credential is the only shared mutable state in the client. A
single lock covers "check expiry, fetch, replace", so concurrent callers
that find the token expired wait for one network refresh and then all see
the same new token.

See Also:
    :class:`mpesa.auth.base.TokenProvider` -- the interface implemented here.
    :class:`mpesa.client.executor.RequestExecutor` -- the main consumer.
"""

from __future__ import annotations

import base64
import json
import logging
import threading
import time
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from mpesa.auth.base import TokenProvider
from mpesa.exceptions import (
    AuthenticationError,
    ErrorCode,
    NetworkError,
    UnexpectedResponseError,
)
from mpesa.models import Credential, MpesaConfig, TokenResponse

logger = logging.getLogger(__name__)


def basic_auth_header(consumer_key: str, consumer_secret: str) -> str:
    """Return the ``Authorization`` value for the token request."""
    raw = f"{consumer_key}:{consumer_secret}"
    return "Basic " + base64.b64encode(raw.encode("utf-8")).decode("ascii")


def redact_token_body(body: str) -> str:
    """Mask ``access_token`` in a token-endpoint body before it is logged or attached."""
    try:
        data = json.loads(body)
    except ValueError:
        return body
    if isinstance(data, dict) and data.get("access_token"):
        data["access_token"] = "***"
        return json.dumps(data)
    return body


class CredentialManager(TokenProvider):
    """Fetch, cache, and refresh bearer tokens from the token endpoint.

    Args:
        consumer_key: The application's consumer key.
        consumer_secret: The application's consumer secret.
        config: Client configuration; supplies the token URL and timeouts.
        http_client: Transport to use. When ``None`` a client is created from
            ``config`` and closed by :meth:`close`; a supplied client is left
            open.
        clock: Returns the current time in seconds. Token expiry is computed
            and checked against this clock, so tests can move time forward.

    Example::

        manager = CredentialManager(key, secret, MpesaConfig())
        token = manager.current_token()   # fetches on first use
    """

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: str,
        config: Optional[MpesaConfig] = None,
        http_client: Optional[httpx.Client] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not consumer_key or not consumer_secret:
            raise ValueError("consumer_key and consumer_secret are required")
        self._consumer_key = consumer_key
        self._consumer_secret = consumer_secret
        self._config = config or MpesaConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=self._config.httpx_timeout())
        self._clock = clock
        self._lock = threading.Lock()
        self._credential: Optional[Credential] = None

    def __repr__(self) -> str:
        return f"CredentialManager(auth_url={self._config.auth_url!r})"

    @property
    def credential(self) -> Optional[Credential]:
        """The cached credential, or ``None`` before the first refresh."""
        return self._credential

    # ------------------------------------------------------------------ #
    # TokenProvider
    # ------------------------------------------------------------------ #

    def current_token(self) -> str:
        with self._lock:
            credential = self._credential
            if credential is None or not credential.is_valid(self._clock()):
                logger.debug("Access token has expired or was never fetched, refreshing")
                credential = self._fetch_locked()
            return credential.access_token

    def refresh(self, stale_token: Optional[str] = None) -> None:
        with self._lock:
            current = self._credential
            if stale_token is not None and current is not None and current.access_token != stale_token:
                logger.debug("Access token was already refreshed by another caller")
                return
            self._fetch_locked()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> CredentialManager:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _fetch_locked(self) -> Credential:
        """Exchange the client credentials for a new token. Caller holds ``_lock``."""
        headers = {
            "Authorization": basic_auth_header(self._consumer_key, self._consumer_secret),
            "Accept": "application/json",
        }
        try:
            response = self._client.get(self._config.auth_url, headers=headers)
        except httpx.TransportError as exc:
            logger.error("Failed to authenticate with M-Pesa: %s", exc)
            raise NetworkError(f"Failed to authenticate with M-Pesa: {exc}") from exc

        body = response.text
        if response.status_code == 401:
            logger.error("Authentication failed with M-Pesa: 401 Unauthorized - invalid API credentials")
            raise AuthenticationError(
                body,
                f"Invalid API credentials: {response.status_code} - {response.reason_phrase}",
            )
        if not response.is_success:
            logger.error("Token endpoint returned HTTP %s: %s", response.status_code, body)
            raise UnexpectedResponseError(
                ErrorCode.INVALID_RESPONSE,
                body,
                f"Token endpoint returned HTTP {response.status_code}",
            )
        if not body:
            logger.error("Unexpected response from M-Pesa: token response body is empty")
            raise UnexpectedResponseError(
                ErrorCode.INVALID_RESPONSE, None, "Token response body is empty"
            )

        try:
            token = TokenResponse.model_validate_json(body)
        except ValidationError as exc:
            redacted = redact_token_body(body)
            logger.error(
                "Failed to parse the authentication response (%d bytes): %s", len(body), redacted
            )
            raise UnexpectedResponseError(
                ErrorCode.INVALID_RESPONSE,
                redacted,
                "Failed to authenticate with M-Pesa, can't parse token response",
            ) from exc

        credential = Credential(
            access_token=token.access_token,
            expires_at=self._clock() + token.expires_in,
        )
        self._credential = credential
        logger.info("Refreshed access token; valid for %s seconds", token.expires_in)
        return credential
