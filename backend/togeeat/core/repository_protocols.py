"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - list_matchings returns (count, page) read in a single statement
    - add_membership raises ConflictError on a duplicate pair, NotFoundError when
      the matching or user row is missing
    - remove_membership raises NotFoundError when the pair does not exist

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - MatchingLike/MembershipLike give services real type information without
      importing the ORM models
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol

from togeeat.core.domain_types import MatchingId, UserId
from togeeat.core.query_builder import MatchingQuery


class MembershipLike(Protocol):
    """One member row as seen by services and the response schemas."""
    matching_id: int
    user_id: int
    joined_at: datetime


class MatchingLike(Protocol):
    """Structural contract for Matching objects handed to services and routes."""
    id: int
    owner_id: int
    matching_type: str
    status: str
    duration: int | None
    matching_date: datetime | None
    created_at: datetime
    expires_at: datetime
    members: list[MembershipLike]


class MemberSummaryLike(Protocol):
    user_id: int
    name: str
    matching_id: int


class MatchingRepository(Protocol):
    """Storage Gateway for matchings and memberships — implemented by shell."""
    async def create_matching(
        self, owner_id: UserId, fields: dict[str, Any],
    ) -> MatchingLike: ...
    async def find_matching(
        self, matching_id: MatchingId, include_members: bool = True,
    ) -> MatchingLike | None: ...
    async def list_matchings(
        self, query: MatchingQuery,
    ) -> tuple[int, Sequence[MatchingLike]]: ...
    async def has_membership(
        self, matching_id: MatchingId, user_id: UserId,
    ) -> bool: ...
    async def add_membership(
        self, matching_id: MatchingId, user_id: UserId, joined_at: datetime,
    ) -> None: ...
    async def remove_membership(
        self, matching_id: MatchingId, user_id: UserId,
    ) -> None: ...
    async def search_members(
        self, caller_id: UserId, name_pattern: str,
    ) -> Sequence[MemberSummaryLike]: ...
    async def bulk_close_expired(self, now: datetime) -> int: ...
    async def delete_matching(self, matching_id: MatchingId) -> None: ...
