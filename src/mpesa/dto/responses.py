"""Synchronous acknowledgements returned by each operation.

These only confirm that the provider accepted a request. The final outcome
of asynchronous operations arrives later on the caller's result URL; see
:mod:`mpesa.dto.callbacks`.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from mpesa.dto.common import KeyValue, ResponseModel

SUCCESS_CODE = "0"


class AcknowledgementResponse(ResponseModel):
    """Shape shared by the asynchronous result-URL operations."""

    originator_conversation_id: Optional[str] = Field(default=None, alias="OriginatorConversationID")
    conversation_id: Optional[str] = Field(default=None, alias="ConversationID")
    response_code: str = Field(alias="ResponseCode")
    response_description: Optional[str] = Field(default=None, alias="ResponseDescription")

    @property
    def is_successful(self) -> bool:
        return self.response_code == SUCCESS_CODE


class AccountBalanceResponse(AcknowledgementResponse):
    pass


class B2CPaymentResponse(AcknowledgementResponse):
    pass


class TransactionStatusResponse(AcknowledgementResponse):
    pass


class TransactionReversalResponse(AcknowledgementResponse):
    pass


class C2BRegisterHeader(ResponseModel):
    response_code: str = Field(alias="responseCode")
    response_message: Optional[str] = Field(default=None, alias="responseMessage")
    customer_message: Optional[str] = Field(default=None, alias="customerMessage")
    timestamp: Optional[str] = Field(default=None, alias="timestamp")


class C2BRegisterResponse(ResponseModel):
    header: C2BRegisterHeader

    @property
    def is_successful(self) -> bool:
        return self.header.response_code == SUCCESS_CODE


class C2BPaymentResponse(ResponseModel):
    request_ref_id: Optional[str] = Field(default=None, alias="RequestRefID")
    response_code: str = Field(alias="ResponseCode")
    response_desc: Optional[str] = Field(default=None, alias="ResponseDesc")
    transaction_id: Optional[str] = Field(default=None, alias="TransactionID")
    additional_info: list[KeyValue] = Field(default_factory=list, alias="AdditionalInfo")

    @property
    def is_successful(self) -> bool:
        return self.response_code == SUCCESS_CODE


class C2BSimulatePaymentResponse(ResponseModel):
    originator_conversation_id: Optional[str] = Field(default=None, alias="OriginatorConversationID")
    response_code: str = Field(alias="ResponseCode")
    response_description: Optional[str] = Field(default=None, alias="ResponseDescription")
    customer_message: Optional[str] = Field(default=None, alias="CustomerMessage")

    @property
    def is_successful(self) -> bool:
        return self.response_code == SUCCESS_CODE


class StkPushResponse(ResponseModel):
    merchant_request_id: Optional[str] = Field(default=None, alias="MerchantRequestID")
    checkout_request_id: Optional[str] = Field(default=None, alias="CheckoutRequestID")
    response_code: str = Field(alias="ResponseCode")
    response_description: Optional[str] = Field(default=None, alias="ResponseDescription")
    customer_message: Optional[str] = Field(default=None, alias="CustomerMessage")

    @property
    def is_successful(self) -> bool:
        return self.response_code == SUCCESS_CODE
