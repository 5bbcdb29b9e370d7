"""Customer-to-business collections: URL registration, payment, simulation.

These are the only operations with known provider error bodies, so each
carries an :class:`~mpesa.services.base.ErrorRule` table. Anything not
listed surfaces as ``UNKNOWN_ERROR`` with the raw body attached.
"""

from __future__ import annotations

import threading
from typing import Optional

from mpesa.dto.requests import C2BPaymentRequest, C2BRegisterRequest, C2BSimulatePaymentRequest
from mpesa.dto.responses import C2BPaymentResponse, C2BRegisterResponse, C2BSimulatePaymentResponse
from mpesa.exceptions import ErrorCode
from mpesa.models import Endpoint
from mpesa.services.base import BaseService, ErrorRule

REGISTER_RULES = (
    ErrorRule(
        400,
        "Short Code already Registered",
        ErrorCode.SHORT_CODE_REGISTERED,
        "Short Code is already registered.",
    ),
)

PAYMENT_RULES = (
    ErrorRule(
        400,
        "The initiator information is invalid.",
        ErrorCode.INVALID_INITIATOR,
        "Invalid initiator information.",
    ),
)

SIMULATE_RULES = (
    ErrorRule(400, "invalid", ErrorCode.INVALID_REQUEST, "Invalid request parameters."),
)


class C2BService(BaseService):
    def register_c2b(
        self,
        request: C2BRegisterRequest,
        api_key: str,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> C2BRegisterResponse:
        """Register the confirmation and validation URLs for a short code.

        The endpoint authenticates with an ``apikey`` query parameter in
        addition to the bearer token.
        """
        return self._post(
            Endpoint.C2B_REGISTER,
            request,
            C2BRegisterResponse,
            operation="Register C2B",
            rules=REGISTER_RULES,
            params={"apikey": api_key},
            cancel=cancel,
        )

    def initiate_payment(
        self,
        request: C2BPaymentRequest,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> C2BPaymentResponse:
        return self._post(
            Endpoint.C2B_PAYMENT,
            request,
            C2BPaymentResponse,
            operation="C2B Payment",
            rules=PAYMENT_RULES,
            cancel=cancel,
        )

    def simulate_c2b_payment(
        self,
        request: C2BSimulatePaymentRequest,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> C2BSimulatePaymentResponse:
        """Simulate a customer payment. Sandbox only."""
        return self._post(
            Endpoint.C2B_SIMULATE_PAYMENT,
            request,
            C2BSimulatePaymentResponse,
            operation="C2B Payment Simulation",
            rules=SIMULATE_RULES,
            cancel=cancel,
        )
