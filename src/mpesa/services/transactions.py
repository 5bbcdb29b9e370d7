"""Transaction status queries and reversals."""

from __future__ import annotations

import threading
from typing import Optional

from mpesa.dto.requests import TransactionReversalRequest, TransactionStatusRequest
from mpesa.dto.responses import TransactionReversalResponse, TransactionStatusResponse
from mpesa.models import Endpoint
from mpesa.services.base import BaseService


class TransactionService(BaseService):
    def check_transaction_status(
        self,
        request: TransactionStatusRequest,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> TransactionStatusResponse:
        return self._post(
            Endpoint.TRANSACTION_STATUS,
            request,
            TransactionStatusResponse,
            operation="Transaction Status",
            cancel=cancel,
        )

    def reverse_transaction(
        self,
        request: TransactionReversalRequest,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> TransactionReversalResponse:
        return self._post(
            Endpoint.TRANSACTION_REVERSAL,
            request,
            TransactionReversalResponse,
            operation="Transaction Reversal",
            cancel=cancel,
        )
