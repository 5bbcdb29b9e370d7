"""Abstract interface between the request executor and its token source.

:class:`~mpesa.client.executor.RequestExecutor` depends only on
:class:`TokenProvider`, so tests can drive it with an in-memory fake and
alternative token sources can be swapped in without touching the retry
logic.

See Also:
    :class:`mpesa.auth.manager.CredentialManager` for the implementation
    backed by the provider's client-credentials endpoint.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class TokenProvider(ABC):
    """Source of bearer tokens for authenticated requests.

    Implementations must be safe to share between threads: concurrent
    callers of :meth:`current_token` must not trigger more than one refresh
    for the same expiry.
    """

    @abstractmethod
    def current_token(self) -> str:
        """Return a token that is not known to be expired, refreshing first if needed.

        Raises:
            AuthenticationError: If a refresh was needed and the credentials
                were rejected.
            NetworkError: If a refresh was needed and the endpoint was
                unreachable.
            UnexpectedResponseError: If a refresh was needed and the
                endpoint's answer could not be parsed.
        """
        ...

    @abstractmethod
    def refresh(self, stale_token: Optional[str] = None) -> None:
        """Fetch a new token unconditionally, or skip if *stale_token* was already replaced.

        Args:
            stale_token: The token the caller saw rejected. When given and the
                cached token is already a different one, another caller has
                refreshed in the meantime and no network call is made.
        """
        ...
