"""API request/response schemas for claims and review endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from cashoffer.common.clock import as_utc
from cashoffer.common.errors import ValidationError

ClaimStatus = Literal["pending", "approved", "rejected", "paid"]


class ClaimSubmitRequest(BaseModel):
    """Claim form payload; also used client-side to validate before sending."""

    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    paypal_email: EmailStr
    phone: str | None = Field(default=None, max_length=40)
    country: str = Field(min_length=1, max_length=16)
    visit_count: int = Field(ge=0)

    @field_validator("name", "country")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("phone")
    @classmethod
    def _blank_phone_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


class ClaimResponse(BaseModel):
    """Full claim record as stored."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    paypal_email: str
    phone: str | None
    country: str
    visit_count_at_claim: int
    status: ClaimStatus
    admin_notes: str | None
    claimed_at: datetime
    processed_at: datetime | None

    @field_validator("claimed_at", "processed_at")
    @classmethod
    def _stored_as_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class ReviewActionRequest(BaseModel):
    """Optional operator notes for approve/reject/mark-paid."""

    notes: str | None = None


class StatusUpdateRequest(BaseModel):
    """Raw status change from the admin dropdown."""

    status: ClaimStatus
    notes: str | None = None


class NotesRequest(BaseModel):
    notes: str


class TimelineEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    from_state: str | None
    to_state: str
    notes: str | None
    created_at: datetime


def parse_submission(data: dict) -> ClaimSubmitRequest:
    """Validate a raw claim form, converting pydantic errors to field-level errors."""

    try:
        return ClaimSubmitRequest.model_validate(data)
    except PydanticValidationError as exc:
        field_errors = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "__root__"
            field_errors.setdefault(field, error["msg"])
        raise ValidationError(field_errors) from exc
