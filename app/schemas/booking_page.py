from __future__ import annotations

from datetime import datetime
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.availability import WeeklyAvailabilityRule

SLUG_PATTERN = r"^[a-z0-9][a-z0-9_-]*$"


def _normalize_slug(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip().lower()


def _validate_timezone(value: str | None) -> str | None:
    if value is None:
        return None
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone '{value}'")
    return value


def _validate_unique_days(
    rules: list[WeeklyAvailabilityRule] | None,
) -> list[WeeklyAvailabilityRule] | None:
    if rules is None:
        return None
    days = [r.day_of_week for r in rules]
    if len(days) != len(set(days)):
        raise ValueError("At most one availability rule per day_of_week is allowed")
    return rules


def _validate_unique_type_ids(types: list | None) -> list | None:
    if types is None:
        return None
    ids = [t.type_id for t in types]
    if len(ids) != len(set(ids)):
        raise ValueError("meeting type ids must be unique within a booking page")
    return types


# --------------------------------------------------------------------------
# Nested configuration
# --------------------------------------------------------------------------

class MeetingTypeBase(BaseModel):
    type_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Identifier referenced by booking requests.",
        examples=["intro-30"],
    )
    name: str = Field(..., min_length=1, examples=["Intro call"])
    duration_minutes: int = Field(..., ge=5, examples=[30])
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    is_active: bool = True
    buffer_minutes: int = Field(default=0, ge=0)
    locations: list[str] = Field(default_factory=list)


class MeetingTypeRead(MeetingTypeBase):
    model_config = ConfigDict(from_attributes=True)


class CustomField(BaseModel):
    """
    Extra question shown to attendees on the public booking form.
    """

    id: str
    name: str
    type: Literal["text", "email", "phone", "textarea", "select", "checkbox"]
    required: bool = False
    options: list[str] = Field(default_factory=list)
    placeholder: str | None = None


class BookingPageSettings(BaseModel):
    require_approval: bool = False
    allow_rescheduling: bool = True
    allow_cancellation: bool = True
    advance_booking_days: int = Field(default=30, ge=1)
    min_booking_notice_hours: int = Field(default=2, ge=0)


# --------------------------------------------------------------------------
# Create schema (POST /booking-pages)
# --------------------------------------------------------------------------

class BookingPageCreate(BaseModel):
    slug: str = Field(
        ...,
        min_length=1,
        max_length=120,
        pattern=SLUG_PATTERN,
        description="URL slug, stored lower-cased.",
        examples=["jane-doe"],
    )
    title: str = Field(..., min_length=1, examples=["Meet with Jane"])
    description: str | None = None
    timezone: str = Field(default="UTC", examples=["Europe/Berlin"])
    is_active: bool = True

    owner_name: str | None = Field(default=None, description="Display name of the owner.")
    owner_email: str | None = Field(default=None, description="Contact email of the owner.")

    meeting_types: list[MeetingTypeBase] = Field(default_factory=list)
    availability: list[WeeklyAvailabilityRule] = Field(default_factory=list)
    custom_fields: list[CustomField] = Field(default_factory=list)
    settings: BookingPageSettings = Field(default_factory=BookingPageSettings)

    @field_validator("slug", mode="before")
    @classmethod
    def _slug(cls, value):
        return _normalize_slug(value) if isinstance(value, str) else value

    @field_validator("timezone")
    @classmethod
    def _timezone(cls, value: str) -> str:
        return _validate_timezone(value)

    @field_validator("availability")
    @classmethod
    def _availability(cls, value):
        return _validate_unique_days(value)

    @field_validator("meeting_types")
    @classmethod
    def _meeting_types(cls, value):
        return _validate_unique_type_ids(value)


# --------------------------------------------------------------------------
# Update schema (PATCH /booking-pages/{id})
# --------------------------------------------------------------------------

class BookingPageUpdate(BaseModel):
    """
    All fields are optional; only provided fields are updated.
    Nested lists replace the stored ones wholesale.
    """

    slug: str | None = Field(
        default=None, min_length=1, max_length=120, pattern=SLUG_PATTERN
    )
    title: str | None = None
    description: str | None = None
    timezone: str | None = None
    is_active: bool | None = None
    owner_name: str | None = None
    owner_email: str | None = None
    meeting_types: list[MeetingTypeBase] | None = None
    availability: list[WeeklyAvailabilityRule] | None = None
    custom_fields: list[CustomField] | None = None
    settings: BookingPageSettings | None = None

    @field_validator("slug", mode="before")
    @classmethod
    def _slug(cls, value):
        return _normalize_slug(value) if isinstance(value, str) else value

    @field_validator("timezone")
    @classmethod
    def _timezone(cls, value: str | None) -> str | None:
        return _validate_timezone(value)

    @field_validator("availability")
    @classmethod
    def _availability(cls, value):
        return _validate_unique_days(value)

    @field_validator("meeting_types")
    @classmethod
    def _meeting_types(cls, value):
        return _validate_unique_type_ids(value)


# --------------------------------------------------------------------------
# Read schema
# --------------------------------------------------------------------------

class BookingPageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(..., examples=[1])
    owner_id: str
    owner_name: str | None = None
    owner_email: str | None = None
    slug: str
    title: str
    description: str | None = None
    timezone: str
    is_active: bool
    meeting_types: list[MeetingTypeRead]
    availability: list[WeeklyAvailabilityRule]
    custom_fields: list[CustomField]
    settings: BookingPageSettings
    created_at: datetime | None = None
    updated_at: datetime | None = None
