"""Matching Lifecycle Engine — create, read, list, delete and the expiry sweep.

Invariants:
    - create validates (missing field → duration → date) BEFORE any write, then writes once
    - New matchings are OPEN with created_at = clock() and a precomputed expires_at
    - find_one never mutates status; only sweep_expired writes CLOSED
    - list() without a status returns OPEN matchings only; list_owned() returns all statuses
    - remove: NotFoundError before ForbiddenError; only the owner may delete

Design Decisions:
    - Clock injected as a callable: tests advance time without patching datetime
    - Sweep is triggered from outside (job/cron), never by an internal timer
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from togeeat.config import Settings
from togeeat.core.domain_types import MatchingId, MatchingStatus, UserId
from togeeat.core.errors import NotFoundError
from togeeat.core.membership_rules import check_can_delete
from togeeat.core.pagination import Page, wrap
from togeeat.core.query_builder import MatchingFilter, build_query, to_utc
from togeeat.core.repository_protocols import MatchingLike, MatchingRepository
from togeeat.core.validate_matching import compute_expires_at, validate_creation
from togeeat.schemas.matching import MatchingCreate

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MatchingLifecycle:
    """Owns the OPEN → CLOSED state machine and matching CRUD."""

    def __init__(
        self, repo: MatchingRepository, settings: Settings,
        clock: Clock = utc_now,
    ):
        self.repo = repo
        self.settings = settings
        self.clock = clock

    async def create(self, owner_id: UserId, data: MatchingCreate) -> MatchingLike:
        """Validate and persist a new OPEN matching owned by owner_id."""
        now = to_utc(self.clock())
        validate_creation(data.matching_type, data.duration, data.matching_date, now)
        matching_date = to_utc(data.matching_date) if data.matching_date else None
        fields = {
            "matching_type": data.matching_type.value,
            "status": MatchingStatus.OPEN.value,
            "title": data.title,
            "description": data.description,
            "location": data.location,
            "duration": data.duration,
            "matching_date": matching_date,
            "created_at": now,
            "expires_at": compute_expires_at(
                data.matching_type, data.duration, matching_date, now,
                self.settings.quick_duration_unit_seconds,
            ),
        }
        matching = await self.repo.create_matching(owner_id, fields)
        logger.info(
            f"Matching {matching.id} created ({data.matching_type.value})",
            extra={"matching_id": matching.id, "user_id": owner_id},
        )
        return matching

    async def find_one(self, matching_id: MatchingId) -> MatchingLike:
        matching = await self.repo.find_matching(matching_id, include_members=True)
        if matching is None:
            raise NotFoundError("matching", matching_id)
        return matching

    async def list(self, flt: MatchingFilter) -> Page[MatchingLike]:
        """Public listing — OPEN only unless a status is requested."""
        query = build_query(
            flt,
            default_limit=self.settings.default_page_size,
            max_limit=self.settings.max_page_size,
        )
        total, items = await self.repo.list_matchings(query)
        return wrap(total, items)

    async def list_owned(
        self, owner_id: UserId, flt: MatchingFilter,
    ) -> Page[MatchingLike]:
        """The caller's own matchings, any status unless one is requested."""
        query = build_query(
            flt,
            default_limit=self.settings.default_page_size,
            max_limit=self.settings.max_page_size,
            owner_id=owner_id,
            default_statuses=None,
        )
        total, items = await self.repo.list_matchings(query)
        return wrap(total, items)

    async def remove(self, matching_id: MatchingId, caller_id: UserId) -> None:
        matching = await self.repo.find_matching(matching_id, include_members=False)
        if matching is None:
            raise NotFoundError("matching", matching_id)
        check_can_delete(matching_id, matching.owner_id, caller_id)
        await self.repo.delete_matching(matching_id)
        logger.info(
            f"Matching {matching_id} deleted by owner",
            extra={"matching_id": matching_id, "user_id": caller_id},
        )

    async def sweep_expired(self) -> int:
        """Close every OPEN matching whose time window has elapsed. Idempotent."""
        closed = await self.repo.bulk_close_expired(to_utc(self.clock()))
        logger.info(
            f"Expiry sweep closed {closed} matching(s)",
            extra={"closed_count": closed},
        )
        return closed
