"""Account balance queries."""

from __future__ import annotations

import threading
from typing import Optional

from mpesa.dto.requests import AccountBalanceRequest
from mpesa.dto.responses import AccountBalanceResponse
from mpesa.models import Endpoint
from mpesa.services.base import BaseService


class AccountService(BaseService):
    def check_account_balance(
        self,
        request: AccountBalanceRequest,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> AccountBalanceResponse:
        """Request the balance of a short code; the figures arrive on ``ResultURL``."""
        return self._post(
            Endpoint.ACCOUNT_BALANCE,
            request,
            AccountBalanceResponse,
            operation="Account Balance",
            cancel=cancel,
        )
