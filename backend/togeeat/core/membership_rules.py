"""Membership Rules — who may join, leave, evict or delete.

Invariants:
    - All functions are PURE: they return decisions or raise, the shell performs the IO
    - CLOSED matchings accept no joins
    - Only the owner may delete a matching or evict another member
    - A non-owner leave removes the caller's own row AND reports ForbiddenError
      (kept for client compatibility — see LeaveDecision.raise_after_removal)
"""

from dataclasses import dataclass

from togeeat.core.domain_types import MatchingStatus, UserId
from togeeat.core.errors import ConflictError, ErrorContext, ForbiddenError, ValidationError


@dataclass(frozen=True)
class LeaveDecision:
    """Which membership row to delete, and whether the call then fails."""
    remove_user_id: UserId
    evicted_by_owner: bool
    raise_after_removal: bool


def check_can_join(matching_id: int, status: MatchingStatus | str) -> None:
    if MatchingStatus(status) == MatchingStatus.CLOSED:
        raise ConflictError(
            "matching is closed", code="MATCHING_CLOSED",
            context=ErrorContext(matching_id=matching_id),
        )


def check_can_delete(matching_id: int, owner_id: int, caller_id: int) -> None:
    if owner_id != caller_id:
        raise ForbiddenError(
            "not allowed operation",
            context=ErrorContext(matching_id=matching_id, user_id=caller_id),
        )


def decide_leave(
    owner_id: int, caller_id: UserId, target_user_id: UserId | None,
) -> LeaveDecision:
    """Owner with a target evicts the target; everyone else removes themselves."""
    if caller_id == owner_id:
        if not target_user_id:
            raise ValidationError("missing member id", field="user_id")
        return LeaveDecision(
            remove_user_id=target_user_id,
            evicted_by_owner=True,
            raise_after_removal=False,
        )
    return LeaveDecision(
        remove_user_id=caller_id,
        evicted_by_owner=False,
        raise_after_removal=True,
    )
