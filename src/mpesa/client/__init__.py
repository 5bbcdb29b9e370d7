"""HTTP execution layer for the M-Pesa client.

Classes:
    :class:`RequestExecutor` -- blocking executor backed by :class:`httpx.Client`
    with bearer injection, one re-authentication per call, and bounded
    exponential-backoff retries.
    :class:`RetryPolicy` -- retry budget and backoff, built from
    :class:`~mpesa.models.MpesaConfig`.

Example::

    from mpesa.client import RequestExecutor

    with RequestExecutor(manager, config) as executor:
        body = executor.post(url, request)
"""

from mpesa.client.executor import RequestExecutor
from mpesa.client.retry import RetryPolicy, RetryState, State

__all__ = ["RequestExecutor", "RetryPolicy", "RetryState", "State"]
