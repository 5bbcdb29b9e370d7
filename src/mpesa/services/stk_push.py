"""STK push (handset payment prompt)."""

from __future__ import annotations

import threading
from typing import Optional

from mpesa.dto.requests import StkPushRequest
from mpesa.dto.responses import StkPushResponse
from mpesa.models import Endpoint
from mpesa.services.base import BaseService


class StkPushService(BaseService):
    def request_stk_push(
        self,
        request: StkPushRequest,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> StkPushResponse:
        """Send the prompt. The subscriber's answer arrives on ``CallBackURL``."""
        return self._post(
            Endpoint.STK_PUSH,
            request,
            StkPushResponse,
            operation="STK Push",
            cancel=cancel,
        )
