"""Payloads the provider POSTs to the caller's own endpoints.

No server is included; these models let an application parse what its
callback handler receives, and build the reply a validation URL must send::

    callback = StkPushCallback.model_validate_json(request_body)
    if callback.body.stk_callback.is_successful:
        receipt = callback.body.stk_callback.metadata_value("MpesaReceiptNumber")
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import Field

from mpesa.dto.common import RequestModel, ResponseModel


# --- STK push ---


class CallbackItem(ResponseModel):
    name: str = Field(alias="Name")
    value: Any = Field(default=None, alias="Value")


class CallbackMetadata(ResponseModel):
    items: list[CallbackItem] = Field(default_factory=list, alias="Item")


class StkCallback(ResponseModel):
    merchant_request_id: Optional[str] = Field(default=None, alias="MerchantRequestID")
    checkout_request_id: Optional[str] = Field(default=None, alias="CheckoutRequestID")
    result_code: int = Field(alias="ResultCode")
    result_desc: Optional[str] = Field(default=None, alias="ResultDesc")
    callback_metadata: Optional[CallbackMetadata] = Field(default=None, alias="CallbackMetadata")

    @property
    def is_successful(self) -> bool:
        return self.result_code == 0

    def metadata_value(self, name: str) -> Any:
        """Return the value of the metadata item called *name*, or ``None``."""
        if self.callback_metadata is None:
            return None
        for item in self.callback_metadata.items:
            if item.name == name:
                return item.value
        return None


class StkCallbackBody(ResponseModel):
    stk_callback: StkCallback = Field(alias="stkCallback")


class StkPushCallback(ResponseModel):
    body: StkCallbackBody = Field(alias="Body")


# --- Result URL (B2C, balance, status, reversal) ---


class ResultParameter(ResponseModel):
    key: str = Field(alias="Key")
    value: Any = Field(default=None, alias="Value")


class ResultParameters(ResponseModel):
    result_parameter: list[ResultParameter] = Field(default_factory=list, alias="ResultParameter")


class ReferenceItem(ResponseModel):
    key: str = Field(alias="Key")
    value: Any = Field(default=None, alias="Value")


class ReferenceData(ResponseModel):
    reference_item: Optional[ReferenceItem] = Field(default=None, alias="ReferenceItem")


class Result(ResponseModel):
    result_type: Optional[int] = Field(default=None, alias="ResultType")
    result_code: int = Field(alias="ResultCode")
    result_desc: Optional[str] = Field(default=None, alias="ResultDesc")
    originator_conversation_id: Optional[str] = Field(default=None, alias="OriginatorConversationID")
    conversation_id: Optional[str] = Field(default=None, alias="ConversationID")
    transaction_id: Optional[str] = Field(default=None, alias="TransactionID")
    result_parameters: Optional[ResultParameters] = Field(default=None, alias="ResultParameters")
    reference_data: Optional[ReferenceData] = Field(default=None, alias="ReferenceData")

    @property
    def is_successful(self) -> bool:
        return self.result_code == 0

    def parameter(self, key: str) -> Any:
        """Return the value of the result parameter called *key*, or ``None``."""
        if self.result_parameters is None:
            return None
        for param in self.result_parameters.result_parameter:
            if param.key == key:
                return param.value
        return None


class ServiceResult(ResponseModel):
    result: Result = Field(alias="Result")


# --- C2B validation / confirmation ---


class ValidationConfirmationRequest(ResponseModel):
    request_type: Optional[str] = Field(default=None, alias="RequestType")
    transaction_type: Optional[str] = Field(default=None, alias="TransactionType")
    trans_id: Optional[str] = Field(default=None, alias="TransID")
    trans_time: Optional[str] = Field(default=None, alias="TransTime")
    trans_amount: Optional[str] = Field(default=None, alias="TransAmount")
    business_short_code: Optional[str] = Field(default=None, alias="BusinessShortCode")
    bill_ref_number: Optional[str] = Field(default=None, alias="BillRefNumber")
    invoice_number: Optional[str] = Field(default=None, alias="InvoiceNumber")
    org_account_balance: Optional[str] = Field(default=None, alias="OrgAccountBalance")
    third_party_trans_id: Optional[str] = Field(default=None, alias="ThirdPartyTransID")
    msisdn: Optional[str] = Field(default=None, alias="MSISDN")
    first_name: Optional[str] = Field(default=None, alias="FirstName")
    middle_name: Optional[str] = Field(default=None, alias="MiddleName")
    last_name: Optional[str] = Field(default=None, alias="LastName")


class ValidationConfirmationResponse(RequestModel):
    """Reply to a validation or confirmation request. ``"0"`` accepts the payment."""

    result_code: str = Field(default="0", alias="ResultCode")
    result_desc: str = Field(default="Accepted", alias="ResultDesc")
    third_party_trans_id: Optional[str] = Field(default=None, alias="ThirdPartyTransID")

    @classmethod
    def accept(cls, third_party_trans_id: Optional[str] = None) -> ValidationConfirmationResponse:
        return cls(third_party_trans_id=third_party_trans_id)

    @classmethod
    def reject(cls, result_code: str, result_desc: str = "Rejected") -> ValidationConfirmationResponse:
        return cls(result_code=result_code, result_desc=result_desc)
