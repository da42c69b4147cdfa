from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

MeetingCategory = Literal["work", "personal", "meeting", "urgent"]
MeetingStatus = Literal["available", "busy", "tentative", "out_of_office"]
MeetingKind = Literal["video", "phone", "in-person", "hybrid"]
AttendeeStatus = Literal["accepted", "declined", "tentative", "pending"]


def _check_interval(start: datetime, end: datetime) -> None:
    if (start.tzinfo is None) != (end.tzinfo is None):
        raise ValueError("start_time and end_time must both include or both omit a UTC offset")
    if end <= start:
        raise ValueError("end_time must be after start_time")


class AttendeeInfo(BaseModel):
    """
    Contact details supplied by the person booking a meeting.
    """

    name: str = Field(..., min_length=1, examples=["Alex Doe"])
    email: str = Field(..., min_length=3, examples=["alex@example.com"])


class AttendeeIn(AttendeeInfo):
    user_id: str | None = Field(
        default=None,
        description="Account id when the attendee is a registered user.",
    )
    status: AttendeeStatus = "pending"


class AttendeeRead(AttendeeIn):
    model_config = ConfigDict(from_attributes=True)

    responded_at: datetime | None = None


class MeetingResponseIn(BaseModel):
    """
    An attendee's answer to a meeting invitation.

    `status` is checked by the service so that an unsupported value is a
    400 rather than a schema error.
    """

    status: str = Field(..., examples=["accepted"])


class MeetingCreate(BaseModel):
    title: str = Field(..., min_length=1, examples=["Weekly sync"])
    description: str | None = None
    start_time: datetime = Field(..., examples=["2025-01-06T10:00:00Z"])
    end_time: datetime = Field(..., examples=["2025-01-06T11:00:00Z"])
    category: MeetingCategory = "meeting"
    location: str | None = None
    is_all_day: bool = False
    status: MeetingStatus = "busy"
    meeting_type: MeetingKind = "video"
    meeting_link: str | None = None
    notes: str | None = None
    agenda: str | None = None
    attendees: list[AttendeeIn] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_order(self) -> "MeetingCreate":
        _check_interval(self.start_time, self.end_time)
        return self


class MeetingUpdate(BaseModel):
    """
    Partial update; `attendees` replaces the stored list when supplied.
    """

    title: str | None = None
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    category: MeetingCategory | None = None
    location: str | None = None
    is_all_day: bool | None = None
    status: MeetingStatus | None = None
    meeting_type: MeetingKind | None = None
    meeting_link: str | None = None
    notes: str | None = None
    agenda: str | None = None
    attendees: list[AttendeeIn] | None = None


class MeetingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    category: str
    location: str | None = None
    is_all_day: bool
    status: str
    created_by: str
    meeting_type: str
    meeting_link: str | None = None
    meeting_code: str | None = None
    notes: str | None = None
    agenda: str | None = None
    booking_page_id: int | None = None
    attendees: list[AttendeeRead]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BookingRequest(BaseModel):
    """
    Public request to book a slot on a booking page.

    Inverted or zero-length intervals are rejected here, before any
    availability check runs.
    """

    meeting_type_id: str = Field(..., examples=["intro-30"])
    start_time: datetime = Field(..., examples=["2025-01-06T09:00:00"])
    end_time: datetime = Field(..., examples=["2025-01-06T10:00:00"])
    attendee_info: AttendeeInfo
    custom_fields: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_order(self) -> "BookingRequest":
        _check_interval(self.start_time, self.end_time)
        return self
