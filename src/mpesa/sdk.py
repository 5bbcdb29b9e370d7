"""Facade that wires the client together and exposes every operation.

:class:`MpesaSdk` owns a single :class:`httpx.Client` shared by the
credential manager and the request executor, builds one service per business
area on top of them, and delegates each public method to the matching
service. Applications normally only need this class::

    with MpesaSdk(key, secret, MpesaConfig(environment=Environment.SANDBOX)) as sdk:
        sdk.test_auth()
        ack = sdk.request_stk_push(request)
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

import httpx

from mpesa.auth.manager import CredentialManager
from mpesa.client.executor import RequestExecutor
from mpesa.config import resolve_credential
from mpesa.dto.requests import (
    AccountBalanceRequest,
    B2CPaymentRequest,
    C2BPaymentRequest,
    C2BRegisterRequest,
    C2BSimulatePaymentRequest,
    StkPushRequest,
    TransactionReversalRequest,
    TransactionStatusRequest,
)
from mpesa.dto.responses import (
    AccountBalanceResponse,
    B2CPaymentResponse,
    C2BPaymentResponse,
    C2BRegisterResponse,
    C2BSimulatePaymentResponse,
    StkPushResponse,
    TransactionReversalResponse,
    TransactionStatusResponse,
)
from mpesa.models import MpesaConfig, Settings
from mpesa.services import (
    AccountService,
    B2CService,
    C2BService,
    StkPushService,
    TransactionService,
)

logger = logging.getLogger(__name__)


class MpesaSdk:
    """Entry point for all M-Pesa operations.

    Args:
        consumer_key: The application's consumer key.
        consumer_secret: The application's consumer secret.
        config: Client configuration. Defaults to the sandbox environment.
        http_client: Transport to share. When ``None`` one is created from
            ``config`` and closed by :meth:`close`; a supplied client is
            left open for its owner.
        sleep: Backoff sleep, forwarded to the executor.
    """

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: str,
        config: Optional[MpesaConfig] = None,
        *,
        http_client: Optional[httpx.Client] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self._config = config or MpesaConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=self._config.httpx_timeout())

        self._credentials = CredentialManager(
            consumer_key, consumer_secret, self._config, http_client=self._client
        )
        executor_kwargs = {"sleep": sleep} if sleep is not None else {}
        self._executor = RequestExecutor(
            self._credentials, self._config, http_client=self._client, **executor_kwargs
        )

        self.account = AccountService(self._executor)
        self.b2c = B2CService(self._executor)
        self.c2b = C2BService(self._executor)
        self.stk_push = StkPushService(self._executor)
        self.transactions = TransactionService(self._executor)

        logger.debug("Initialised M-Pesa client for %s", self._config.environment.value)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        http_client: Optional[httpx.Client] = None,
    ) -> MpesaSdk:
        """Build a client from on-disk settings, resolving the credential sources.

        Raises:
            ConfigError: If a credential source cannot be resolved.
        """
        return cls(
            resolve_credential(settings.consumer_key_source),
            resolve_credential(settings.consumer_secret_source),
            settings.config,
            http_client=http_client,
        )

    @property
    def config(self) -> MpesaConfig:
        return self._config

    @property
    def credentials(self) -> CredentialManager:
        return self._credentials

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def test_auth(self) -> None:
        """Fetch a fresh token; raises if the credentials or the network are bad."""
        self._credentials.refresh()

    def check_account_balance(
        self, request: AccountBalanceRequest, *, cancel: Optional[threading.Event] = None
    ) -> AccountBalanceResponse:
        return self.account.check_account_balance(request, cancel=cancel)

    def initiate_b2c_payment(
        self, request: B2CPaymentRequest, *, cancel: Optional[threading.Event] = None
    ) -> B2CPaymentResponse:
        return self.b2c.initiate_b2c_payment(request, cancel=cancel)

    def register_c2b(
        self,
        request: C2BRegisterRequest,
        api_key: str,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> C2BRegisterResponse:
        return self.c2b.register_c2b(request, api_key, cancel=cancel)

    def initiate_c2b_payment(
        self, request: C2BPaymentRequest, *, cancel: Optional[threading.Event] = None
    ) -> C2BPaymentResponse:
        return self.c2b.initiate_payment(request, cancel=cancel)

    def simulate_c2b_payment(
        self, request: C2BSimulatePaymentRequest, *, cancel: Optional[threading.Event] = None
    ) -> C2BSimulatePaymentResponse:
        return self.c2b.simulate_c2b_payment(request, cancel=cancel)

    def request_stk_push(
        self, request: StkPushRequest, *, cancel: Optional[threading.Event] = None
    ) -> StkPushResponse:
        return self.stk_push.request_stk_push(request, cancel=cancel)

    def check_transaction_status(
        self, request: TransactionStatusRequest, *, cancel: Optional[threading.Event] = None
    ) -> TransactionStatusResponse:
        return self.transactions.check_transaction_status(request, cancel=cancel)

    def reverse_transaction(
        self, request: TransactionReversalRequest, *, cancel: Optional[threading.Event] = None
    ) -> TransactionReversalResponse:
        return self.transactions.reverse_transaction(request, cancel=cancel)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> MpesaSdk:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
