from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

HHMM_PATTERN = r"^(([01]\d|2[0-3]):[0-5]\d|24:00)$"


class WeeklyAvailabilityRule(BaseModel):
    """
    Open working window for a single day of the week.

    Only the hour component of `start_time` / `end_time` is used when
    computing availability; minutes are kept for display.
    """

    model_config = ConfigDict(from_attributes=True)

    day_of_week: int = Field(
        ...,
        ge=0,
        le=6,
        description="Day of week, 0=Sunday .. 6=Saturday.",
        examples=[1],
    )
    start_time: str = Field(
        ...,
        pattern=HHMM_PATTERN,
        description="Start of the working window (HH:MM).",
        examples=["09:00"],
    )
    end_time: str = Field(
        ...,
        pattern=HHMM_PATTERN,
        description="End of the working window (HH:MM).",
        examples=["17:00"],
    )
    is_available: bool = Field(
        default=True,
        description="Whether the owner accepts bookings on this day at all.",
    )
    buffer_minutes: int = Field(
        default=0,
        ge=0,
        description="Buffer between meetings on this day, in minutes.",
    )

    @model_validator(mode="after")
    def _check_window(self) -> "WeeklyAvailabilityRule":
        # Zero-padded HH:MM strings compare correctly as text.
        if self.is_available and self.start_time >= self.end_time:
            raise ValueError("start_time must be earlier than end_time")
        return self


class BookableInterval(BaseModel):
    """
    Candidate interval that may be booked. Computed, never persisted.
    """

    start: datetime = Field(..., description="Interval start (inclusive).")
    end: datetime = Field(..., description="Interval end (exclusive).")

    @model_validator(mode="after")
    def _check_order(self) -> "BookableInterval":
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class AvailableSlot(BookableInterval):
    available: bool = Field(default=True)


class ExistingCommitment(BaseModel):
    """
    Time already occupied on an owner's calendar.
    """

    owner_id: str = Field(..., description="Owner whose calendar holds this commitment.")
    start: datetime
    end: datetime


class AvailabilityResponse(BaseModel):
    available_slots: list[AvailableSlot] = Field(
        ...,
        description="Bookable slots for the requested day, ordered by start time.",
    )
