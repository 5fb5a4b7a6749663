"""Matching Routes — HTTP surface of the lifecycle engine and membership manager.

Invariants:
    - Caller identity comes only from get_current_user_id (verified bearer token)
    - Static paths (/my-matchings, /members) registered before /{matching_id}
    - Query parameter names are camelCase on the wire (ownerName, matchBefore, ...)
    - Routes hold no rules: every decision is made by the services

Design Decisions:
    - join/leave are PATCH /join/{id} and /leave/{id} for compatibility with existing clients
    - Date filters arrive as raw strings: the Query Builder owns parsing and its errors
"""

from fastapi import APIRouter, Depends, Query, status

from togeeat.api.deps import get_lifecycle, get_membership_manager
from togeeat.core.domain_types import MatchingId, UserId
from togeeat.core.query_builder import MatchingFilter
from togeeat.infrastructure.auth import get_current_user_id
from togeeat.schemas.matching import (
    MatchingCreate, MatchingPage, MatchingResponse, MemberSummary,
)
from togeeat.services.matching_lifecycle import MatchingLifecycle
from togeeat.services.membership_manager import MembershipManager

router = APIRouter(prefix="/api/v1/matchings", tags=["matchings"])


def matching_filter(
    owner_name: str | None = Query(
        None, alias="ownerName",
        description="case-insensitive substring of the owner's name",
    ),
    match_before: str | None = Query(
        None, alias="matchBefore", description="ISO-8601, exclusive",
    ),
    match_after: str | None = Query(
        None, alias="matchAfter", description="ISO-8601, inclusive",
    ),
    created_before: str | None = Query(
        None, alias="createdBefore", description="ISO-8601, exclusive",
    ),
    created_after: str | None = Query(
        None, alias="createdAfter", description="ISO-8601, inclusive",
    ),
    status_filter: str | None = Query(
        None, alias="status", description="OPEN, CLOSED or ALL",
    ),
    limit: int | None = Query(None, ge=1),
    offset: int | None = Query(None, ge=0),
    sort_by: str | None = Query(
        None, alias="sortBy", description="createdAt, matchingDate or id",
    ),
    sort_order: str | None = Query(None, alias="sortOrder", description="asc or desc"),
) -> MatchingFilter:
    return MatchingFilter(
        owner_name=owner_name,
        match_before=match_before,
        match_after=match_after,
        created_before=created_before,
        created_after=created_after,
        status=status_filter,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post(
    "", response_model=MatchingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_matching(
    body: MatchingCreate,
    caller_id: UserId = Depends(get_current_user_id),
    lifecycle: MatchingLifecycle = Depends(get_lifecycle),
):
    """Create a new matching owned by the caller."""
    return await lifecycle.create(caller_id, body)


@router.get("", response_model=MatchingPage)
async def list_matchings(
    flt: MatchingFilter = Depends(matching_filter),
    lifecycle: MatchingLifecycle = Depends(get_lifecycle),
):
    """List matchings (OPEN unless `status` says otherwise), paginated."""
    return MatchingPage.model_validate(await lifecycle.list(flt))


@router.get("/my-matchings", response_model=MatchingPage)
async def list_my_matchings(
    flt: MatchingFilter = Depends(matching_filter),
    caller_id: UserId = Depends(get_current_user_id),
    lifecycle: MatchingLifecycle = Depends(get_lifecycle),
):
    """Matchings created by the caller, paginated."""
    return MatchingPage.model_validate(await lifecycle.list_owned(caller_id, flt))


@router.get("/members", response_model=list[MemberSummary])
async def search_members(
    member_name: str | None = Query(None, alias="memberName"),
    caller_id: UserId = Depends(get_current_user_id),
    members: MembershipManager = Depends(get_membership_manager),
):
    """Members of the caller's matchings whose name contains memberName."""
    return await members.search_members_by_name(caller_id, member_name)


@router.get("/{matching_id}", response_model=MatchingResponse)
async def get_matching(
    matching_id: int,
    lifecycle: MatchingLifecycle = Depends(get_lifecycle),
):
    """Get a matching with its members."""
    return await lifecycle.find_one(MatchingId(matching_id))


@router.patch("/join/{matching_id}", status_code=status.HTTP_204_NO_CONTENT)
async def join_matching(
    matching_id: int,
    caller_id: UserId = Depends(get_current_user_id),
    members: MembershipManager = Depends(get_membership_manager),
):
    """Join the caller to an OPEN matching."""
    await members.join(MatchingId(matching_id), caller_id)


@router.patch("/leave/{matching_id}", status_code=status.HTTP_204_NO_CONTENT)
async def leave_matching(
    matching_id: int,
    user_id: int | None = Query(None, alias="userId"),
    caller_id: UserId = Depends(get_current_user_id),
    members: MembershipManager = Depends(get_membership_manager),
):
    """Owner removes `userId`; any other caller leaves (and gets 403, see service)."""
    target = UserId(user_id) if user_id else None
    await members.leave(MatchingId(matching_id), caller_id, target)


@router.delete("/{matching_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_matching(
    matching_id: int,
    caller_id: UserId = Depends(get_current_user_id),
    lifecycle: MatchingLifecycle = Depends(get_lifecycle),
):
    """Delete a matching and its memberships. Owner only."""
    await lifecycle.remove(MatchingId(matching_id), caller_id)
