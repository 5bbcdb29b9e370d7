"""Business-to-customer disbursements."""

from __future__ import annotations

import threading
from typing import Optional

from mpesa.dto.requests import B2CPaymentRequest
from mpesa.dto.responses import B2CPaymentResponse
from mpesa.models import Endpoint
from mpesa.services.base import BaseService


class B2CService(BaseService):
    def initiate_b2c_payment(
        self,
        request: B2CPaymentRequest,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> B2CPaymentResponse:
        return self._post(
            Endpoint.B2C_PAYMENT,
            request,
            B2CPaymentResponse,
            operation="B2C Payment",
            cancel=cancel,
        )
