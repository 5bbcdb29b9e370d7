"""Bearer-token authentication for the M-Pesa client.

- :class:`TokenProvider` -- the interface the request executor depends on.
- :class:`CredentialManager` -- client-credentials implementation with a
  thread-safe cached token.

Typical usage::

    from mpesa.auth import CredentialManager

    manager = CredentialManager(key, secret, config)
    manager.refresh()              # connectivity self-test
    token = manager.current_token()
"""

from mpesa.auth.base import TokenProvider
from mpesa.auth.manager import CredentialManager, basic_auth_header

__all__ = [
    "CredentialManager",
    "TokenProvider",
    "basic_auth_header",
]
