from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from datetime import date as date_type, datetime, time, timedelta, tzinfo
from typing import Protocol

from app.schemas.availability import AvailableSlot, BookableInterval

logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


class InvalidRuleError(ValueError):
    """
    Raised when a stored availability rule has a start/end time that is not
    a valid "HH:MM" string.
    """


class RuleLike(Protocol):
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool


class CommitmentLike(Protocol):
    start: datetime
    end: datetime


def day_of_week(moment: datetime | date_type) -> int:
    """
    Sunday-based day index (0=Sunday .. 6=Saturday).

    `date.weekday()` is Monday-based, so shift it by one.
    """
    return (moment.weekday() + 1) % 7


def parse_hour(value: str) -> int:
    """
    Return the hour component of an "HH:MM" string. Minutes are truncated.
    """
    match = _HHMM.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise InvalidRuleError(f"Invalid time '{value}', expected HH:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 24 or minute > 59 or (hour == 24 and minute):
        raise InvalidRuleError(f"Time out of range in '{value}'")
    return hour


def find_rule(rules: Iterable[RuleLike], dow: int) -> RuleLike | None:
    """
    Look up the rule for a day of week. Absence means "unavailable".
    """
    for rule in rules:
        if rule.day_of_week == dow:
            return rule
    return None


def localize(moment: datetime, tz: tzinfo | None) -> datetime:
    """
    Express `moment` in the governing timezone.

    Naive datetimes are taken to be wall-clock time in that zone already.
    `tz=None` means the server's local timezone.
    """
    if tz is None:
        return moment.astimezone()
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def _working_hours(rule: RuleLike | None) -> tuple[int, int] | None:
    if rule is None or not rule.is_available:
        return None
    try:
        return parse_hour(rule.start_time), parse_hour(rule.end_time)
    except InvalidRuleError as exc:
        logger.warning(
            "Ignoring malformed availability rule for day %s: %s",
            rule.day_of_week,
            exc,
        )
        return None


def find_overlapping(
    commitments: Iterable[CommitmentLike],
    candidate: BookableInterval,
    tz: tzinfo | None = None,
) -> list[CommitmentLike]:
    """
    Return commitments overlapping the candidate (half-open intervals).

    Touching intervals (one ends exactly when the other starts) do not overlap.
    """
    start = localize(candidate.start, tz)
    end = localize(candidate.end, tz)
    return [
        c
        for c in commitments
        if localize(c.start, tz) < end and localize(c.end, tz) > start
    ]


def is_available(
    rules: Iterable[RuleLike],
    commitments: Iterable[CommitmentLike],
    candidate: BookableInterval,
    tz: tzinfo | None = None,
) -> bool:
    """
    Decide whether `candidate` can be booked.

    Rules
    -----
    1) A rule must exist for the candidate's day of week and be available.
    2) The candidate's start hour must lie in [start_hour, end_hour).
    3) No commitment may overlap the candidate.

    `commitments` must already be scoped to the booking page's owner.
    The interval itself is not validated here; callers reject inverted or
    zero-length intervals first.
    """
    start = localize(candidate.start, tz)

    hours = _working_hours(find_rule(rules, day_of_week(start)))
    if hours is None:
        return False

    start_hour, end_hour = hours
    if start.hour < start_hour or start.hour >= end_hour:
        return False

    return not find_overlapping(commitments, candidate, tz)


def enumerate_slots(
    rules: Sequence[RuleLike],
    commitments: Sequence[CommitmentLike],
    on_date: date_type,
    duration_minutes: int,
    tz: tzinfo | None = None,
) -> list[AvailableSlot]:
    """
    List bookable slots for `on_date`, ascending by start time.

    Candidates start on every whole hour of the day's working window
    regardless of `duration_minutes`. A slot is dropped when its end hour
    is past the window's end hour or when it fails `is_available`.
    Inputs are never mutated, so repeated calls give identical output.
    """
    hours = _working_hours(find_rule(rules, day_of_week(on_date)))
    if hours is None:
        return []

    start_hour, end_hour = hours
    duration = timedelta(minutes=duration_minutes)
    slots: list[AvailableSlot] = []

    for hour in range(start_hour, end_hour):
        slot_start = localize(datetime.combine(on_date, time(hour=hour)), tz)
        slot_end = slot_start + duration

        if slot_end.hour > end_hour:
            continue

        candidate = BookableInterval(start=slot_start, end=slot_end)
        if is_available(rules, commitments, candidate, tz):
            slots.append(AvailableSlot(start=slot_start, end=slot_end))

    return slots
