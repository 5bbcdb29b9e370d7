"""Base classes and shared pieces for the operation payload models.

Python attribute names are snake_case; the provider's PascalCase keys are
declared as aliases. Either form is accepted on input, and payloads are
always sent by alias.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from mpesa.validation import require_non_empty

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def new_request_id() -> str:
    return str(uuid.uuid4())


def timestamp_now() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def wire_name(model: type[BaseModel], info: ValidationInfo) -> str:
    """Return the provider's key for the field being validated, for error messages."""
    field = model.model_fields.get(info.field_name or "")
    if field is not None and field.alias:
        return field.alias
    return info.field_name or "value"


class RequestModel(BaseModel):
    """Base for outgoing payloads.

    Unknown keys are rejected so that typos in hand-written payloads (for
    example in ``mpesa call``) surface before anything is sent. Numbers
    are accepted where the provider expects numeric strings.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        coerce_numbers_to_str=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready payload keyed by the provider's names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ResponseModel(BaseModel):
    """Base for incoming payloads. Keys the models do not declare are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


class KeyValue(BaseModel):
    """A ``{"Key": ..., "Value": ...}`` pair used in parameter and reference lists."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    key: str = Field(alias="Key")
    value: str = Field(alias="Value")

    @field_validator("key", "value")
    @classmethod
    def _non_empty(cls, value: str, info: ValidationInfo) -> str:
        return require_non_empty(value, wire_name(cls, info))
