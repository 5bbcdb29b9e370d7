"""Request, response and callback payload models.

Requests validate on construction; responses ignore keys they do not
declare; callbacks cover what the provider POSTs back to the caller.
"""

from mpesa.dto.callbacks import (
    ServiceResult,
    StkPushCallback,
    ValidationConfirmationRequest,
    ValidationConfirmationResponse,
)
from mpesa.dto.common import KeyValue, RequestModel, ResponseModel
from mpesa.dto.requests import (
    AccountBalanceRequest,
    B2CCommandID,
    B2CPaymentRequest,
    C2BPaymentRequest,
    C2BRegisterRequest,
    C2BSimulatePaymentRequest,
    Initiator,
    Party,
    ResponseType,
    StkPushRequest,
    TransactionReversalRequest,
    TransactionStatusRequest,
    TransactionType,
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

__all__ = [
    "AccountBalanceRequest",
    "AccountBalanceResponse",
    "B2CCommandID",
    "B2CPaymentRequest",
    "B2CPaymentResponse",
    "C2BPaymentRequest",
    "C2BPaymentResponse",
    "C2BRegisterRequest",
    "C2BRegisterResponse",
    "C2BSimulatePaymentRequest",
    "C2BSimulatePaymentResponse",
    "Initiator",
    "KeyValue",
    "Party",
    "RequestModel",
    "ResponseModel",
    "ResponseType",
    "ServiceResult",
    "StkPushCallback",
    "StkPushRequest",
    "StkPushResponse",
    "TransactionReversalRequest",
    "TransactionReversalResponse",
    "TransactionStatusRequest",
    "TransactionStatusResponse",
    "TransactionType",
    "ValidationConfirmationRequest",
    "ValidationConfirmationResponse",
]
