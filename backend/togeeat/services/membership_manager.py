"""Membership Manager — join, leave/evict and member search.

Invariants:
    - join: NotFoundError → ConflictError(MATCHING_CLOSED) → ConflictError(duplicate), in that order
    - Duplicate joins are rejected up front AND by the storage uniqueness constraint
    - joined_at comes from the injected clock, so member order follows clock time
    - leave never touches storage for a missing matching
    - Owner evicting a non-member succeeds silently
    - Non-owner leave removes the caller's row, THEN raises ForbiddenError

Design Decisions:
    - The self-leave ForbiddenError is kept for compatibility with existing clients
      that treat 403 as "left"; the removal is committed before the error is raised
"""

import logging
from collections.abc import Sequence

from togeeat.core.domain_types import MatchingId, UserId
from togeeat.core.errors import (
    ConflictError, ErrorContext, ForbiddenError, NotFoundError, ValidationError,
)
from togeeat.core.membership_rules import check_can_join, decide_leave
from togeeat.core.query_builder import to_utc
from togeeat.core.repository_protocols import MatchingRepository, MemberSummaryLike
from togeeat.services.matching_lifecycle import Clock, utc_now

logger = logging.getLogger(__name__)


class MembershipManager:
    """Keeps membership rows consistent with matching ownership and status."""

    def __init__(self, repo: MatchingRepository, clock: Clock = utc_now):
        self.repo = repo
        self.clock = clock

    async def join(self, matching_id: MatchingId, user_id: UserId) -> None:
        matching = await self.repo.find_matching(matching_id, include_members=False)
        if matching is None:
            raise NotFoundError("matching", matching_id)
        check_can_join(matching_id, matching.status)
        if await self.repo.has_membership(matching_id, user_id):
            logger.warning(
                f"User {user_id} already joined matching {matching_id}",
                extra={"matching_id": matching_id, "user_id": user_id},
            )
            raise ConflictError(
                "user already joined this matching",
                context=ErrorContext(matching_id=matching_id, user_id=user_id),
            )
        await self.repo.add_membership(matching_id, user_id, to_utc(self.clock()))
        logger.info(
            f"User {user_id} joined matching {matching_id}",
            extra={"matching_id": matching_id, "user_id": user_id},
        )

    async def leave(
        self,
        matching_id: MatchingId,
        caller_id: UserId,
        target_user_id: UserId | None = None,
    ) -> None:
        matching = await self.repo.find_matching(matching_id, include_members=False)
        if matching is None:
            raise NotFoundError("matching", matching_id)
        decision = decide_leave(matching.owner_id, caller_id, target_user_id)
        try:
            await self.repo.remove_membership(matching_id, decision.remove_user_id)
        except NotFoundError:
            logger.info(
                f"User {decision.remove_user_id} was not a member of matching {matching_id}",
                extra={"matching_id": matching_id, "user_id": caller_id},
            )
        else:
            logger.info(
                f"User {decision.remove_user_id} removed from matching {matching_id}",
                extra={
                    "matching_id": matching_id, "user_id": caller_id,
                    "target_user_id": decision.remove_user_id,
                },
            )
        if decision.raise_after_removal:
            raise ForbiddenError(
                "not allowed operation",
                context=ErrorContext(matching_id=matching_id, user_id=caller_id),
            )

    async def search_members_by_name(
        self, caller_id: UserId, name_pattern: str | None,
    ) -> Sequence[MemberSummaryLike]:
        """Members of matchings the caller owns or joined whose name contains the pattern."""
        if not name_pattern or not name_pattern.strip():
            raise ValidationError("missing member name", field="member_name")
        return await self.repo.search_members(caller_id, name_pattern.strip())
