"""Retry policy as a pure state machine.

Nothing here performs I/O or sleeps. The executor feeds each raw result
through :func:`classify_response` or :func:`classify_transport_error`, then
asks :func:`next_step` what to do. The returned :class:`Step` says whether to
send again, back off first, re-authenticate first, or stop with a body or
an error.

States::

    SENDING ──2xx──────────────────────────────▶ DONE (body)
       │  ──401, first──▶ REAUTH_PENDING ──▶ SENDING
       │  ──401, second─────────────────────────▶ DONE (AuthenticationError)
       │  ──429/5xx/I-O, budget left──▶ AWAITING_BACKOFF ──▶ SENDING
       │  ──429/5xx/I-O, exhausted───────────────▶ DONE (NetworkError)
       └──other status─────────────────────────▶ DONE (HttpError)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Optional, Union

from mpesa.exceptions import AuthenticationError, HttpError, MpesaError, NetworkError
from mpesa.models import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_BACKOFF, MpesaConfig

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503})


class State(str, enum.Enum):
    SENDING = "sending"
    AWAITING_BACKOFF = "awaiting_backoff"
    REAUTH_PENDING = "reauth_pending"
    DONE = "done"


@dataclass(frozen=True)
class RetryPolicy:
    """Bounds for one request. ``max_retries`` counts total attempts."""

    max_retries: int = DEFAULT_MAX_RETRIES
    base_backoff: float = DEFAULT_RETRY_BACKOFF
    retryable_statuses: frozenset[int] = field(default=RETRYABLE_STATUSES)

    @classmethod
    def from_config(cls, config: MpesaConfig) -> RetryPolicy:
        return cls(max_retries=config.max_retries, base_backoff=config.retry_backoff)

    def backoff(self, attempt: int) -> float:
        return self.base_backoff * (2 ** attempt)


@dataclass(frozen=True)
class RetryState:
    """Per-call counters. ``attempt`` is zero-based."""

    attempt: int = 0
    used_reauth: bool = False


# --- Outcomes of a single attempt ---


@dataclass(frozen=True)
class Success:
    body: str


@dataclass(frozen=True)
class RetryableFailure:
    """A transport failure (``cause`` set) or a retryable status (``status_code`` set)."""

    status_code: Optional[int] = None
    body: Optional[str] = None
    cause: Optional[BaseException] = None


@dataclass(frozen=True)
class TerminalFailure:
    status_code: int
    body: str


@dataclass(frozen=True)
class AuthFailure:
    body: str


Outcome = Union[Success, RetryableFailure, TerminalFailure, AuthFailure]


@dataclass(frozen=True)
class Step:
    """What the executor does next.

    ``delay`` is only meaningful for :attr:`State.AWAITING_BACKOFF`; ``body``
    and ``error`` only for :attr:`State.DONE`, where exactly one is set.
    """

    state: State
    retry: RetryState
    delay: float = 0.0
    body: Optional[str] = None
    error: Optional[MpesaError] = None


def classify_response(
    status_code: int,
    body: str,
    policy: RetryPolicy = RetryPolicy(),
) -> Outcome:
    """Map one HTTP response to an :data:`Outcome`."""
    if 200 <= status_code < 300:
        return Success(body)
    if status_code == 401:
        return AuthFailure(body)
    if status_code in policy.retryable_statuses:
        return RetryableFailure(status_code=status_code, body=body)
    return TerminalFailure(status_code, body)


def classify_transport_error(exc: BaseException) -> Outcome:
    """Every transport failure (timeout, refused connection, DNS) is retryable."""
    return RetryableFailure(cause=exc)


def next_step(retry: RetryState, outcome: Outcome, policy: RetryPolicy) -> Step:
    """Transition from ``SENDING`` given the outcome of the attempt just made."""
    if isinstance(outcome, Success):
        return Step(State.DONE, retry, body=outcome.body)

    if isinstance(outcome, AuthFailure):
        if retry.used_reauth:
            return Step(
                State.DONE,
                retry,
                error=AuthenticationError(
                    outcome.body,
                    "Failed to authenticate despite having a valid token.",
                ),
            )
        # Re-authentication does not consume an attempt.
        return Step(State.REAUTH_PENDING, replace(retry, used_reauth=True))

    if isinstance(outcome, TerminalFailure):
        return Step(
            State.DONE, retry, error=HttpError(outcome.status_code, outcome.body)
        )

    if retry.attempt + 1 < policy.max_retries:
        return Step(
            State.AWAITING_BACKOFF,
            replace(retry, attempt=retry.attempt + 1),
            delay=policy.backoff(retry.attempt),
        )

    if outcome.cause is not None:
        message = f"Network error after retries: {outcome.cause}"
    else:
        message = (
            f"Request failed after all retries. "
            f"Last status: {outcome.status_code}, body: {outcome.body}"
        )
    return Step(State.DONE, retry, error=NetworkError(message))
