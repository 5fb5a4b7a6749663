"""Matching Schemas — Pydantic models for the matching API boundary.

Invariants:
    - Wire format is camelCase (matchingType, matchingDate, ownerId ...); snake_case accepted on input
    - MatchingCreate only checks shapes and types — lifecycle rules live in core/validate_matching
    - Responses are built from ORM objects (from_attributes)

Design Decisions:
    - Lifecycle rules NOT duplicated as pydantic validators: the engine must enforce
      them for every caller, and keeping one copy keeps the error messages stable
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from togeeat.core.domain_types import MatchingStatus, MatchingType


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True,
    )


class MatchingCreate(_CamelModel):
    """Matching creation — QUICK needs duration, YOTEI needs matchingDate."""
    matching_type: MatchingType
    duration: int | None = None
    matching_date: datetime | None = None
    title: str | None = Field(None, max_length=200)
    description: str | None = Field(None, max_length=5000)
    location: str | None = Field(None, max_length=200)

    @field_validator("title", "location")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class MemberResponse(_CamelModel):
    user_id: int
    joined_at: datetime


class MatchingResponse(_CamelModel):
    """Matching with its member list — public-facing data."""
    id: int
    owner_id: int
    matching_type: MatchingType
    status: MatchingStatus
    title: str | None = None
    description: str | None = None
    location: str | None = None
    duration: int | None = None
    matching_date: datetime | None = None
    created_at: datetime
    expires_at: datetime
    members: list[MemberResponse] = []


class MatchingSummary(_CamelModel):
    """Listing row — same as MatchingResponse without members."""
    id: int
    owner_id: int
    matching_type: MatchingType
    status: MatchingStatus
    title: str | None = None
    location: str | None = None
    duration: int | None = None
    matching_date: datetime | None = None
    created_at: datetime
    expires_at: datetime


class MatchingPage(_CamelModel):
    total: int
    items: list[MatchingSummary]


class MemberSummary(_CamelModel):
    user_id: int
    name: str
    matching_id: int
