"""Request payloads for every provider operation.

Each model validates its fields on construction (phone numbers, short
codes, callback URLs, base64 credentials, lengths) and raises
:class:`pydantic.ValidationError` naming the offending wire key. Generated
identifiers and timestamps are filled in when omitted.

Secret fields (``SecurityCredential``, ``Password``, ``SecretKey``) are
excluded from ``repr`` so request objects can be logged safely.

Example::

    request = StkPushRequest(
        business_short_code="174379",
        password="cGFzc3dvcmQ=",
        amount="10",
        party_a="251700000000",
        party_b="174379",
        phone_number="251700000000",
        callback_url="https://example.com/callback",
        account_reference="INV-001",
        transaction_desc="Invoice 001",
    )
"""

from __future__ import annotations

import enum
from typing import Literal, Optional

from pydantic import Field, ValidationInfo, field_validator, model_validator

from mpesa.dto.common import (
    KeyValue,
    RequestModel,
    new_request_id,
    timestamp_now,
    wire_name,
)
from mpesa.validation import (
    require_base64,
    require_length,
    require_non_empty,
    require_numeric,
    require_phone_number,
    require_short_code,
    require_url,
)


class B2CCommandID(str, enum.Enum):
    SALARY_PAYMENT = "SalaryPayment"
    BUSINESS_PAYMENT = "BusinessPayment"
    PROMOTION_PAYMENT = "PromotionPayment"


class TransactionType(str, enum.Enum):
    CUSTOMER_PAY_BILL_ONLINE = "CustomerPayBillOnline"
    CUSTOMER_BUY_GOODS_ONLINE = "CustomerBuyGoodsOnline"


class ResponseType(str, enum.Enum):
    """What the provider does when the validation URL is unreachable."""

    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


# --- Account ---


class AccountBalanceRequest(RequestModel):
    originator_conversation_id: str = Field(
        default_factory=new_request_id, alias="OriginatorConversationID"
    )
    initiator: str = Field(alias="Initiator")
    security_credential: str = Field(alias="SecurityCredential", repr=False)
    command_id: Literal["AccountBalance"] = Field(default="AccountBalance", alias="CommandID")
    party_a: str = Field(alias="PartyA")
    identifier_type: str = Field(default="4", alias="IdentifierType")
    remarks: Optional[str] = Field(default=None, alias="Remarks")
    queue_timeout_url: str = Field(alias="QueueTimeOutURL")
    result_url: str = Field(alias="ResultURL")

    @field_validator("originator_conversation_id", "initiator", "identifier_type")
    @classmethod
    def _non_empty(cls, value: str, info: ValidationInfo) -> str:
        return require_non_empty(value, wire_name(cls, info))

    @field_validator("security_credential")
    @classmethod
    def _base64(cls, value: str, info: ValidationInfo) -> str:
        name = wire_name(cls, info)
        return require_base64(require_non_empty(value, name), name)

    @field_validator("party_a")
    @classmethod
    def _short_code(cls, value: str, info: ValidationInfo) -> str:
        return require_short_code(value, wire_name(cls, info))

    @field_validator("queue_timeout_url", "result_url")
    @classmethod
    def _url(cls, value: str, info: ValidationInfo) -> str:
        return require_url(value, wire_name(cls, info))


# --- B2C ---


class B2CPaymentRequest(RequestModel):
    """Business-to-customer disbursement.

    ``Occassion`` is spelled the way the provider spells it.
    """

    initiator_name: str = Field(alias="InitiatorName")
    security_credential: str = Field(alias="SecurityCredential", repr=False)
    occasion: Optional[str] = Field(default=None, alias="Occassion")
    command_id: B2CCommandID = Field(alias="CommandID")
    party_a: str = Field(alias="PartyA")
    party_b: str = Field(alias="PartyB")
    remarks: str = Field(alias="Remarks")
    amount: str = Field(alias="Amount")
    queue_timeout_url: str = Field(alias="QueueTimeOutURL")
    result_url: str = Field(alias="ResultURL")

    @field_validator("initiator_name", "remarks")
    @classmethod
    def _non_empty(cls, value: str, info: ValidationInfo) -> str:
        return require_non_empty(value, wire_name(cls, info))

    @field_validator("occasion")
    @classmethod
    def _optional_non_empty(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if value is None:
            return value
        return require_non_empty(value, wire_name(cls, info))

    @field_validator("security_credential")
    @classmethod
    def _base64(cls, value: str, info: ValidationInfo) -> str:
        name = wire_name(cls, info)
        return require_base64(require_non_empty(value, name), name)

    @field_validator("party_a")
    @classmethod
    def _short_code(cls, value: str, info: ValidationInfo) -> str:
        return require_short_code(value, wire_name(cls, info))

    @field_validator("party_b")
    @classmethod
    def _phone(cls, value: str, info: ValidationInfo) -> str:
        return require_phone_number(value, wire_name(cls, info))

    @field_validator("amount")
    @classmethod
    def _numeric(cls, value: str, info: ValidationInfo) -> str:
        return require_numeric(value, wire_name(cls, info))

    @field_validator("queue_timeout_url", "result_url")
    @classmethod
    def _url(cls, value: str, info: ValidationInfo) -> str:
        return require_url(value, wire_name(cls, info))


# --- C2B ---


class C2BRegisterRequest(RequestModel):
    short_code: str = Field(alias="ShortCode")
    response_type: ResponseType = Field(alias="ResponseType")
    command_id: Literal["RegisterURL"] = Field(default="RegisterURL", alias="CommandID")
    confirmation_url: str = Field(alias="ConfirmationURL")
    validation_url: str = Field(alias="ValidationURL")

    @field_validator("short_code")
    @classmethod
    def _short_code(cls, value: str, info: ValidationInfo) -> str:
        return require_short_code(value, wire_name(cls, info))

    @field_validator("confirmation_url", "validation_url")
    @classmethod
    def _url(cls, value: str, info: ValidationInfo) -> str:
        return require_url(value, wire_name(cls, info))


class Initiator(RequestModel):
    identifier_type: int = Field(default=1, alias="IdentifierType")
    identifier: str = Field(alias="Identifier")
    security_credential: str = Field(alias="SecurityCredential", repr=False)
    secret_key: str = Field(alias="SecretKey", repr=False)

    @field_validator("identifier", "security_credential", "secret_key")
    @classmethod
    def _non_empty(cls, value: str, info: ValidationInfo) -> str:
        return require_non_empty(value, wire_name(cls, info))


class Party(RequestModel):
    """A payer or payee. Identifier type 1 is a subscriber MSISDN, 4 an organisation."""

    identifier_type: int = Field(alias="IdentifierType")
    identifier: str = Field(alias="Identifier")
    short_code: Optional[str] = Field(default=None, alias="ShortCode")

    @classmethod
    def primary(cls, phone_number: str) -> Party:
        return cls(identifier_type=1, identifier=phone_number)

    @classmethod
    def receiver(cls, short_code: str, identifier: Optional[str] = None) -> Party:
        return cls(identifier_type=4, identifier=identifier or short_code, short_code=short_code)


class C2BPaymentRequest(RequestModel):
    request_ref_id: str = Field(default_factory=new_request_id, alias="RequestRefID")
    command_id: Literal["CustomerPayBillOnline"] = Field(
        default="CustomerPayBillOnline", alias="CommandID"
    )
    remark: str = Field(alias="Remark")
    channel_session_id: str = Field(alias="ChannelSessionID")
    source_system: str = Field(alias="SourceSystem")
    timestamp: str = Field(default_factory=timestamp_now, alias="Timestamp")
    parameters: list[KeyValue] = Field(alias="Parameters", min_length=1)
    reference_data: list[KeyValue] = Field(default_factory=list, alias="ReferenceData")
    initiator: Initiator = Field(alias="Initiator")
    primary_party: Party = Field(alias="PrimaryParty")
    receiver_party: Party = Field(alias="ReceiverParty")

    @field_validator("remark", "channel_session_id", "source_system")
    @classmethod
    def _non_empty(cls, value: str, info: ValidationInfo) -> str:
        return require_non_empty(value, wire_name(cls, info))

    @field_validator("primary_party")
    @classmethod
    def _primary_party(cls, value: Party) -> Party:
        require_phone_number(value.identifier, "PrimaryParty Identifier")
        return value

    @field_validator("receiver_party")
    @classmethod
    def _receiver_party(cls, value: Party) -> Party:
        require_short_code(value.identifier, "ReceiverParty Identifier")
        if value.short_code is None:
            raise ValueError("ReceiverParty ShortCode must not be empty.")
        require_short_code(value.short_code, "ReceiverParty ShortCode")
        return value


class C2BSimulatePaymentRequest(RequestModel):
    command_id: str = Field(default="CustomerPayBillOnline", alias="CommandID")
    amount: str = Field(alias="Amount")
    msisdn: str = Field(alias="Msisdn")
    bill_ref_number: str = Field(default_factory=new_request_id, alias="BillRefNumber")
    short_code: str = Field(alias="ShortCode")

    @field_validator("command_id", "bill_ref_number")
    @classmethod
    def _non_empty(cls, value: str, info: ValidationInfo) -> str:
        return require_non_empty(value, wire_name(cls, info))

    @field_validator("amount")
    @classmethod
    def _numeric(cls, value: str, info: ValidationInfo) -> str:
        return require_numeric(value, wire_name(cls, info))

    @field_validator("msisdn")
    @classmethod
    def _phone(cls, value: str, info: ValidationInfo) -> str:
        return require_phone_number(value, wire_name(cls, info))

    @field_validator("short_code")
    @classmethod
    def _short_code(cls, value: str, info: ValidationInfo) -> str:
        return require_short_code(value, wire_name(cls, info))


# --- STK push ---


class StkPushRequest(RequestModel):
    """Prompt a subscriber's handset to authorise a payment."""

    merchant_request_id: str = Field(default_factory=new_request_id, alias="MerchantRequestID")
    business_short_code: str = Field(alias="BusinessShortCode")
    password: str = Field(alias="Password", repr=False)
    timestamp: str = Field(default_factory=timestamp_now, alias="Timestamp")
    transaction_type: TransactionType = Field(
        default=TransactionType.CUSTOMER_PAY_BILL_ONLINE, alias="TransactionType"
    )
    amount: str = Field(alias="Amount")
    party_a: str = Field(alias="PartyA")
    party_b: str = Field(alias="PartyB")
    phone_number: str = Field(alias="PhoneNumber")
    callback_url: str = Field(alias="CallBackURL")
    account_reference: str = Field(alias="AccountReference")
    transaction_desc: str = Field(alias="TransactionDesc")
    reference_data: list[KeyValue] = Field(default_factory=list, alias="ReferenceData")

    @field_validator("business_short_code", "party_b")
    @classmethod
    def _short_code(cls, value: str, info: ValidationInfo) -> str:
        return require_short_code(value, wire_name(cls, info))

    @field_validator("password")
    @classmethod
    def _base64(cls, value: str, info: ValidationInfo) -> str:
        name = wire_name(cls, info)
        return require_base64(require_non_empty(value, name), name)

    @field_validator("amount")
    @classmethod
    def _numeric(cls, value: str, info: ValidationInfo) -> str:
        return require_numeric(value, wire_name(cls, info))

    @field_validator("party_a", "phone_number")
    @classmethod
    def _phone(cls, value: str, info: ValidationInfo) -> str:
        return require_phone_number(value, wire_name(cls, info))

    @field_validator("callback_url")
    @classmethod
    def _url(cls, value: str, info: ValidationInfo) -> str:
        return require_url(value, wire_name(cls, info))

    @field_validator("account_reference")
    @classmethod
    def _account_reference(cls, value: str, info: ValidationInfo) -> str:
        name = wire_name(cls, info)
        return require_length(require_non_empty(value, name), 1, 12, name)

    @field_validator("transaction_desc")
    @classmethod
    def _transaction_desc(cls, value: str, info: ValidationInfo) -> str:
        name = wire_name(cls, info)
        return require_length(require_non_empty(value, name), 1, 13, name)


# --- Transactions ---


class TransactionStatusRequest(RequestModel):
    """Query the outcome of an earlier transaction.

    Either ``TransactionID`` or ``OriginalConversationID`` must be given.
    """

    initiator: str = Field(alias="Initiator")
    security_credential: str = Field(alias="SecurityCredential", repr=False)
    command_id: Literal["TransactionStatusQuery"] = Field(
        default="TransactionStatusQuery", alias="CommandID"
    )
    transaction_id: Optional[str] = Field(default=None, alias="TransactionID")
    original_conversation_id: Optional[str] = Field(default=None, alias="OriginalConversationID")
    party_a: str = Field(alias="PartyA")
    identifier_type: str = Field(alias="IdentifierType")
    result_url: str = Field(alias="ResultURL")
    queue_timeout_url: str = Field(alias="QueueTimeOutURL")
    remarks: Optional[str] = Field(default=None, alias="Remarks")
    occasion: Optional[str] = Field(default=None, alias="Occasion")

    @field_validator("initiator", "security_credential", "party_a")
    @classmethod
    def _non_empty(cls, value: str, info: ValidationInfo) -> str:
        return require_non_empty(value, wire_name(cls, info))

    @field_validator("identifier_type")
    @classmethod
    def _numeric(cls, value: str, info: ValidationInfo) -> str:
        return require_numeric(value, wire_name(cls, info))

    @field_validator("result_url", "queue_timeout_url")
    @classmethod
    def _url(cls, value: str, info: ValidationInfo) -> str:
        return require_url(value, wire_name(cls, info))

    @field_validator("remarks", "occasion")
    @classmethod
    def _bounded(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if value is None:
            return value
        return require_length(value, 0, 100, wire_name(cls, info))

    @model_validator(mode="after")
    def _transaction_reference(self) -> TransactionStatusRequest:
        if not (self.transaction_id or "").strip() and not (self.original_conversation_id or "").strip():
            raise ValueError("Either TransactionID or OriginalConversationID must be provided.")
        return self


class TransactionReversalRequest(RequestModel):
    originator_conversation_id: str = Field(
        default_factory=new_request_id, alias="OriginatorConversationID"
    )
    initiator: str = Field(alias="Initiator")
    security_credential: str = Field(alias="SecurityCredential", repr=False)
    command_id: Literal["TransactionReversal"] = Field(
        default="TransactionReversal", alias="CommandID"
    )
    transaction_id: str = Field(alias="TransactionID")
    amount: str = Field(alias="Amount")
    original_conversation_id: str = Field(alias="OriginalConversationID")
    party_a: str = Field(alias="PartyA")
    receiver_identifier_type: str = Field(alias="ReceiverIdentifierType")
    receiver_party: str = Field(alias="ReceiverParty")
    result_url: str = Field(alias="ResultURL")
    queue_timeout_url: str = Field(alias="QueueTimeOutURL")
    remarks: str = Field(alias="Remarks")
    occasion: Optional[str] = Field(default=None, alias="Occasion")

    @field_validator(
        "originator_conversation_id",
        "initiator",
        "transaction_id",
        "amount",
        "original_conversation_id",
        "party_a",
        "receiver_identifier_type",
        "receiver_party",
        "remarks",
    )
    @classmethod
    def _non_empty(cls, value: str, info: ValidationInfo) -> str:
        return require_non_empty(value, wire_name(cls, info))

    @field_validator("security_credential")
    @classmethod
    def _base64(cls, value: str, info: ValidationInfo) -> str:
        name = wire_name(cls, info)
        return require_base64(require_non_empty(value, name), name)

    @field_validator("result_url", "queue_timeout_url")
    @classmethod
    def _url(cls, value: str, info: ValidationInfo) -> str:
        return require_url(value, wire_name(cls, info))
