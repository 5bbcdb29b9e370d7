"""Numeric process exit codes for the ``mpesa`` command-line tool.

Each constant maps to a failure category and is referenced by the
corresponding :class:`~mpesa.exceptions.MpesaError` subclass. Shell
scripts can branch on the exit code without parsing stderr.

Example::

    $ mpesa auth test
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the consumer key/secret were rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an invalid payload."""

EXIT_AUTH_FAILURE = 3
"""The provider rejected the credentials."""

EXIT_HTTP_ERROR = 4
"""The provider answered with a non-retryable HTTP error status."""

EXIT_UNEXPECTED_RESPONSE = 5
"""The provider's response could not be understood or mapped to a domain error."""

EXIT_NETWORK_ERROR = 6
"""A network-level error persisted after all retries (timeout, DNS, refused)."""

EXIT_CANCELLED = 130
"""The request was cancelled by the caller before it completed."""
