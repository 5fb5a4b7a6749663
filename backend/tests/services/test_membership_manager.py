"""Membership Manager — join, leave/evict and member search.

Tests cover:
    - join: NotFoundError, duplicate → ConflictError, closed → MATCHING_CLOSED
    - At most one membership row per (matching, user), even when the up-front check is bypassed
    - Foreign-key rejections (unknown user, vanished matching) are NotFoundError, not conflicts
    - joined_at is taken from the clock
    - Owner eviction (member and non-member target), owner without target
    - Self-leave: row removed AND ForbiddenError raised
    - leave on a missing matching removes nothing
    - search_members_by_name scope, case-insensitivity and empty-pattern rejection
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from togeeat.core.domain_types import MatchingType, UserId
from togeeat.core.errors import (
    ConflictError, ForbiddenError, NotFoundError, ValidationError,
)
from togeeat.infrastructure.matching_repository import SqlMatchingRepository
from togeeat.models.membership import Membership
from togeeat.schemas.matching import MatchingCreate

ALICE, BOB, CAROL, BOBBY = UserId(1), UserId(2), UserId(3), UserId(4)


@pytest.fixture
async def matching(lifecycle, users):
    return await lifecycle.create(
        ALICE, MatchingCreate(matching_type=MatchingType.QUICK, duration=30),
    )


async def _member_ids(lifecycle, matching_id):
    found = await lifecycle.find_one(matching_id)
    return sorted(m.user_id for m in found.members)


async def _rows(test_db, matching_id, user_id) -> int:
    return (await test_db.execute(
        select(func.count()).select_from(Membership).where(
            Membership.matching_id == matching_id,
            Membership.user_id == user_id,
        ),
    )).scalar_one()


# ─── join ─────────────────────────────────────────────────────────

async def test_join_adds_member(membership, lifecycle, matching):
    await membership.join(matching.id, BOB)
    assert await _member_ids(lifecycle, matching.id) == [BOB]


async def test_join_missing_matching_is_not_found(membership, users):
    with pytest.raises(NotFoundError):
        await membership.join(404, BOB)


async def test_second_join_conflicts_and_keeps_one_row(membership, matching, test_db):
    await membership.join(matching.id, BOB)
    with pytest.raises(ConflictError):
        await membership.join(matching.id, BOB)
    assert await _rows(test_db, matching.id, BOB) == 1


async def test_storage_constraint_rejects_duplicate_from_another_session(
    matching, test_session_factory, repo, clock,
):
    """Two sessions racing past has_membership: the primary key decides."""
    await repo.add_membership(matching.id, BOB, clock.now)

    async with test_session_factory() as other:
        with pytest.raises(ConflictError):
            await SqlMatchingRepository(other).add_membership(
                matching.id, BOB, clock.now,
            )


async def test_join_by_unknown_user_is_not_found(membership, matching, test_db):
    matching_id = matching.id  # the failed insert rolls back and expires loaded rows
    with pytest.raises(NotFoundError, match="user with id=999 not found"):
        await membership.join(matching_id, UserId(999))
    assert await _rows(test_db, matching_id, 999) == 0


async def test_insert_for_vanished_matching_is_not_found(repo, users, clock):
    """Matching deleted between the existence check and the insert."""
    with pytest.raises(NotFoundError, match="matching with id=4242 not found"):
        await repo.add_membership(4242, BOB, clock.now)


async def test_joined_at_follows_the_clock(membership, lifecycle, matching, clock):
    await membership.join(matching.id, CAROL)
    clock.advance(minutes=1)
    await membership.join(matching.id, BOB)

    found = await lifecycle.find_one(matching.id)
    assert [m.user_id for m in found.members] == [CAROL, BOB]
    assert [m.joined_at.replace(tzinfo=None) for m in found.members] == [
        (clock.now - timedelta(minutes=1)).replace(tzinfo=None),
        clock.now.replace(tzinfo=None),
    ]


async def test_owner_may_join_own_matching(membership, lifecycle, matching):
    await membership.join(matching.id, ALICE)
    assert await _member_ids(lifecycle, matching.id) == [ALICE]


async def test_join_closed_matching_is_rejected(membership, lifecycle, matching, clock):
    clock.advance(minutes=30)
    await lifecycle.sweep_expired()
    with pytest.raises(ConflictError) as exc:
        await membership.join(matching.id, BOB)
    assert exc.value.code == "MATCHING_CLOSED"


# ─── leave ────────────────────────────────────────────────────────

async def test_owner_evicts_member(membership, lifecycle, matching):
    await membership.join(matching.id, BOB)
    await membership.join(matching.id, CAROL)

    await membership.leave(matching.id, ALICE, BOB)

    assert await _member_ids(lifecycle, matching.id) == [CAROL]


async def test_owner_evicting_non_member_succeeds_silently(membership, lifecycle, matching):
    await membership.join(matching.id, CAROL)
    await membership.leave(matching.id, ALICE, BOB)
    assert await _member_ids(lifecycle, matching.id) == [CAROL]


async def test_owner_without_target_is_rejected(membership, matching):
    with pytest.raises(ValidationError, match="missing member id"):
        await membership.leave(matching.id, ALICE, None)


async def test_self_leave_removes_row_then_raises_forbidden(
    membership, lifecycle, matching, test_db,
):
    await membership.join(matching.id, BOB)

    with pytest.raises(ForbiddenError, match="not allowed operation"):
        await membership.leave(matching.id, BOB)

    assert await _rows(test_db, matching.id, BOB) == 0
    assert await _member_ids(lifecycle, matching.id) == []


async def test_member_cannot_evict_others_but_still_leaves(membership, lifecycle, matching):
    await membership.join(matching.id, BOB)
    await membership.join(matching.id, CAROL)

    with pytest.raises(ForbiddenError):
        await membership.leave(matching.id, BOB, CAROL)

    assert await _member_ids(lifecycle, matching.id) == [CAROL]


async def test_non_member_leave_still_raises_forbidden(membership, matching):
    with pytest.raises(ForbiddenError):
        await membership.leave(matching.id, CAROL)


async def test_leave_missing_matching_is_not_found(membership, matching, test_db):
    await membership.join(matching.id, BOB)
    with pytest.raises(NotFoundError):
        await membership.leave(404, BOB)
    assert await _rows(test_db, matching.id, BOB) == 1


async def test_rejoin_after_leaving(membership, lifecycle, matching):
    await membership.join(matching.id, BOB)
    with pytest.raises(ForbiddenError):
        await membership.leave(matching.id, BOB)
    await membership.join(matching.id, BOB)
    assert await _member_ids(lifecycle, matching.id) == [BOB]


# ─── search_members_by_name ───────────────────────────────────────

async def test_search_members_in_owned_matching(membership, matching):
    await membership.join(matching.id, BOB)
    await membership.join(matching.id, BOBBY)
    await membership.join(matching.id, CAROL)

    found = await membership.search_members_by_name(ALICE, "bob")
    assert [(m.user_id, m.name, m.matching_id) for m in found] == [
        (BOBBY, "Bobby Tables", matching.id),
        (BOB, "bob", matching.id),
    ]


async def test_search_members_in_joined_matching(membership, matching):
    await membership.join(matching.id, BOB)
    await membership.join(matching.id, CAROL)

    found = await membership.search_members_by_name(CAROL, "BO")
    assert [m.user_id for m in found] == [BOB]


async def test_search_excludes_matchings_caller_is_not_part_of(membership, lifecycle, matching):
    other = await lifecycle.create(
        CAROL, MatchingCreate(matching_type=MatchingType.QUICK, duration=10),
    )
    await membership.join(other.id, BOB)

    assert await membership.search_members_by_name(ALICE, "bob") == []


@pytest.mark.parametrize("pattern", [None, "", "   "])
async def test_search_requires_a_pattern(membership, pattern):
    with pytest.raises(ValidationError, match="missing member name"):
        await membership.search_members_by_name(ALICE, pattern)
