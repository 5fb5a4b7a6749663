"""Matching Creation Rules — pure validation and time-window computation.

Invariants:
    - validate_creation is PURE: raises ValidationError, never touches storage
    - Checks run in a fixed order: missing field → duration → matching date
    - duration == 0 passes validation (the window is then already elapsed)
    - matching_date must be strictly later than `now`
    - expires_at is computed once at creation and never recomputed

Design Decisions:
    - Time window stored as expires_at: the sweep becomes a single portable
      `UPDATE ... WHERE expires_at <= now` instead of per-type date arithmetic in SQL
    - `now` passed in explicitly: callers own the clock (tests freeze it)
"""

from datetime import datetime, timedelta

from togeeat.core.domain_types import MatchingType
from togeeat.core.errors import ValidationError
from togeeat.core.query_builder import to_utc


def validate_creation(
    matching_type: MatchingType,
    duration: int | None,
    matching_date: datetime | None,
    now: datetime,
) -> None:
    """Raise ValidationError if the create input breaks a lifecycle rule."""
    if (
        (matching_type == MatchingType.QUICK and duration is None)
        or (matching_type == MatchingType.YOTEI and matching_date is None)
    ):
        raise ValidationError("missing duration or matching date")
    if duration is not None and duration < 0:
        raise ValidationError("invalid duration", field="duration")
    if matching_date is not None and to_utc(matching_date) <= to_utc(now):
        raise ValidationError("invalid matching date", field="matching_date")


def compute_expires_at(
    matching_type: MatchingType,
    duration: int | None,
    matching_date: datetime | None,
    created_at: datetime,
    duration_unit_seconds: int,
) -> datetime:
    """End of the matching's time window: scheduled date for YOTEI, created_at + duration for QUICK."""
    if matching_type == MatchingType.YOTEI:
        return to_utc(matching_date)
    return to_utc(created_at) + timedelta(seconds=duration * duration_unit_seconds)
