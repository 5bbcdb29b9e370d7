"""Authenticated request execution with bounded retries.

This module provides :class:`RequestExecutor`, which every operation service
uses to talk to the provider. It wraps :class:`httpx.Client` and layers on:

- **Bearer injection** -- the token from the
  :class:`~mpesa.auth.base.TokenProvider` is read before every attempt.
- **Re-authentication** -- the first 401 of a call refreshes the token and
  resends without consuming a retry slot; a second 401 is fatal.
- **Retry with backoff** -- transport failures and 429/500/502/503 are
  retried up to ``max_retries`` total attempts, sleeping
  ``retry_backoff * 2**attempt`` between them.
- **Cancellation** -- an optional :class:`threading.Event` aborts the call
  before the next attempt or during a backoff wait.

Successful bodies are returned as text and never parsed here; that is the
job of :mod:`mpesa.services`. The transition rules live in
:mod:`mpesa.client.retry`.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Callable, Optional

import httpx
from pydantic import BaseModel

from mpesa.auth.base import TokenProvider
from mpesa.client.retry import (
    RetryPolicy,
    RetryState,
    State,
    classify_response,
    classify_transport_error,
    next_step,
)
from mpesa.dto.common import RequestModel
from mpesa.exceptions import RequestCancelledError
from mpesa.models import MpesaConfig

logger = logging.getLogger(__name__)


def redact_url(url: str) -> str:
    """Drop the query string, which may carry API keys, before logging."""
    return url.split("?", 1)[0]


def serialize_body(body: Any) -> Optional[bytes]:
    """Encode a request payload as JSON, once per call.

    Request models go through :meth:`~mpesa.dto.common.RequestModel.to_wire`;
    other Pydantic models are dumped the same way, by alias with unset
    optional fields omitted.
    """
    if body is None:
        return None
    if isinstance(body, RequestModel):
        body = body.to_wire()
    elif isinstance(body, BaseModel):
        body = body.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(body).encode("utf-8")


class RequestExecutor:
    """Execute authenticated calls against the provider.

    Args:
        token_provider: Source of bearer tokens; refreshed on the first 401.
        config: Supplies the retry budget, backoff and timeouts.
        http_client: Transport to use. When ``None`` one is created from
            ``config`` and closed by :meth:`close`.
        sleep: Called with the backoff delay in seconds when no cancel event
            is supplied.

    Example::

        with RequestExecutor(manager, config) as executor:
            body = executor.post(config.url_for(Endpoint.STK_PUSH), request)
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        config: Optional[MpesaConfig] = None,
        http_client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._token_provider = token_provider
        self._config = config or MpesaConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=self._config.httpx_timeout())
        self._sleep = sleep
        self._policy = RetryPolicy.from_config(self._config)

    @property
    def config(self) -> MpesaConfig:
        return self._config

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def execute(
        self,
        method: str,
        url: str,
        body: Any = None,
        *,
        params: Optional[dict[str, str]] = None,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        """Send one logical request and return the 2xx body unmodified.

        Args:
            method: HTTP method.
            url: Absolute URL of the endpoint.
            body: A Pydantic model, a JSON-serialisable value, or ``None``.
            params: Extra query parameters.
            cancel: When set, the call stops before its next attempt.

        Returns:
            The response body text.

        Raises:
            AuthenticationError: On a 401 that survives one token refresh, or
                when the refresh itself is rejected.
            NetworkError: When transport failures or retryable statuses
                exhaust ``max_retries`` attempts.
            HttpError: On any other non-2xx status.
            RequestCancelledError: When *cancel* is set.
        """
        method = method.upper()
        content = serialize_body(body)
        log_url = redact_url(url)
        retry = RetryState()

        while True:
            self._check_cancelled(cancel, method, log_url)
            token = self._token_provider.current_token()
            request = self._build_request(method, url, token, content, params)

            logger.debug(
                "Sending %s %s (attempt %d/%d)",
                method, log_url, retry.attempt + 1, self._policy.max_retries,
            )
            try:
                response = self._client.send(request)
            except httpx.TransportError as exc:
                logger.warning("Network error on %s %s: %s", method, log_url, exc)
                outcome = classify_transport_error(exc)
            else:
                logger.debug("Response %s from %s: %s", response.status_code, log_url, response.text)
                outcome = classify_response(response.status_code, response.text, self._policy)

            step = next_step(retry, outcome, self._policy)
            retry = step.retry

            if step.state is State.DONE:
                if step.error is None:
                    logger.info("%s %s succeeded", method, log_url)
                    return step.body or ""
                logger.error("%s %s failed: %s", method, log_url, step.error)
                cause = getattr(outcome, "cause", None)
                if cause is not None:
                    raise step.error from cause
                raise step.error

            if step.state is State.REAUTH_PENDING:
                logger.warning("Unauthorized response from %s, refreshing access token", log_url)
                self._token_provider.refresh(stale_token=token)
            elif step.state is State.AWAITING_BACKOFF:
                logger.warning(
                    "Retrying %s %s in %.2fs (attempt %d/%d)",
                    method, log_url, step.delay, retry.attempt + 1, self._policy.max_retries,
                )
                self._wait(step.delay, cancel, method, log_url)

    def get(self, url: str, **kwargs: Any) -> str:
        return self.execute("GET", url, **kwargs)

    def post(self, url: str, body: Any = None, **kwargs: Any) -> str:
        return self.execute("POST", url, body, **kwargs)

    def put(self, url: str, body: Any = None, **kwargs: Any) -> str:
        return self.execute("PUT", url, body, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> str:
        return self.execute("DELETE", url, **kwargs)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> RequestExecutor:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _build_request(
        self,
        method: str,
        url: str,
        token: str,
        content: Optional[bytes],
        params: Optional[dict[str, str]],
    ) -> httpx.Request:
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        if content is not None:
            headers["Content-Type"] = "application/json"
        return self._client.build_request(
            method, url, params=params, headers=headers, content=content
        )

    def _wait(
        self,
        delay: float,
        cancel: Optional[threading.Event],
        method: str,
        log_url: str,
    ) -> None:
        if cancel is None:
            self._sleep(delay)
            return
        if cancel.wait(delay):
            self._check_cancelled(cancel, method, log_url)

    @staticmethod
    def _check_cancelled(
        cancel: Optional[threading.Event], method: str, log_url: str
    ) -> None:
        if cancel is not None and cancel.is_set():
            logger.info("%s %s cancelled", method, log_url)
            raise RequestCancelledError(f"Request cancelled: {method} {log_url}")
