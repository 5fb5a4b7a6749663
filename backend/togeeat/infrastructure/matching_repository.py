"""SQL Storage Gateway — SQLAlchemy implementation of MatchingRepository.

Invariants:
    - Every write commits before returning (one write per call, no hidden batching)
    - list_matchings reads total and page in ONE statement (count(*) OVER ()),
      so both come from the same snapshot
    - Rejected inserts never leak IntegrityError: a duplicate pair is ConflictError,
      a missing matching or user (foreign key) is NotFoundError
    - Listings never load members
    - bulk_close_expired is a single conditional UPDATE — re-running it is a no-op
    - Reads use populate_existing: objects already in the identity map are refreshed

Design Decisions:
    - ilike with escaped wildcards for name filters: user input matched literally
    - Empty page past the end falls back to a plain COUNT so total stays correct
"""

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import noload, raiseload, selectinload
from sqlalchemy.orm.exc import FlushError

from togeeat.core.domain_types import MatchingId, MatchingStatus, SortOrder, UserId
from togeeat.core.errors import ConflictError, ErrorContext, NotFoundError
from togeeat.core.query_builder import MatchingQuery, escape_like
from togeeat.models.matching import Matching
from togeeat.models.membership import Membership
from togeeat.models.user import User

logger = logging.getLogger(__name__)


def _name_pattern(value: str) -> str:
    return f"%{escape_like(value)}%"


class SqlMatchingRepository:
    """Matching and membership persistence over an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_matching(
        self, owner_id: UserId, fields: dict[str, Any],
    ) -> Matching:
        matching = Matching(owner_id=owner_id, **fields)
        self.db.add(matching)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                f"Matching insert rejected by storage: {e}",
                extra={"user_id": owner_id},
            )
            raise NotFoundError(
                "user", owner_id, context=ErrorContext(user_id=owner_id),
            ) from e
        return await self.find_matching(MatchingId(matching.id))

    async def find_matching(
        self, matching_id: MatchingId, include_members: bool = True,
    ) -> Matching | None:
        loader = (
            selectinload(Matching.members) if include_members
            else raiseload(Matching.members)
        )
        result = await self.db.execute(
            select(Matching)
            .where(Matching.id == matching_id)
            .options(loader)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    async def list_matchings(
        self, query: MatchingQuery,
    ) -> tuple[int, Sequence[Matching]]:
        conditions = self._conditions(query)
        stmt = select(Matching, func.count().over().label("total"))
        if query.owner_name:
            stmt = stmt.join(User, User.id == Matching.owner_id)
        stmt = (
            stmt.where(*conditions)
            .options(noload(Matching.members))
            .order_by(*self._ordering(query))
            .limit(query.limit)
            .offset(query.offset)
            .execution_options(populate_existing=True)
        )
        rows = (await self.db.execute(stmt)).all()
        if rows:
            return rows[0].total, [row.Matching for row in rows]
        if query.offset == 0:
            return 0, []
        count_stmt = select(func.count()).select_from(Matching)
        if query.owner_name:
            count_stmt = count_stmt.join(User, User.id == Matching.owner_id)
        total = (await self.db.execute(count_stmt.where(*conditions))).scalar_one()
        return total, []

    def _conditions(self, query: MatchingQuery) -> list:
        conditions = []
        if query.statuses is not None:
            conditions.append(
                Matching.status.in_([s.value for s in query.statuses]),
            )
        if query.owner_id is not None:
            conditions.append(Matching.owner_id == query.owner_id)
        if query.owner_name:
            conditions.append(
                User.name.ilike(_name_pattern(query.owner_name), escape="\\"),
            )
        if query.match_after is not None:
            conditions.append(Matching.matching_date >= query.match_after)
        if query.match_before is not None:
            conditions.append(Matching.matching_date < query.match_before)
        if query.created_after is not None:
            conditions.append(Matching.created_at >= query.created_after)
        if query.created_before is not None:
            conditions.append(Matching.created_at < query.created_before)
        return conditions

    def _ordering(self, query: MatchingQuery) -> list:
        column = getattr(Matching, query.sort_field.value)
        if query.sort_order == SortOrder.ASC:
            return [column.asc(), Matching.id.asc()]
        return [column.desc(), Matching.id.desc()]

    async def has_membership(
        self, matching_id: MatchingId, user_id: UserId,
    ) -> bool:
        result = await self.db.execute(
            select(Membership.user_id).where(
                Membership.matching_id == matching_id,
                Membership.user_id == user_id,
            ),
        )
        return result.first() is not None

    async def add_membership(
        self, matching_id: MatchingId, user_id: UserId, joined_at: datetime,
    ) -> None:
        self.db.add(Membership(
            matching_id=matching_id, user_id=user_id, joined_at=joined_at,
        ))
        try:
            await self.db.commit()
        except (IntegrityError, FlushError) as e:
            await self.db.rollback()
            logger.warning(
                f"Membership insert rejected by storage: {e}",
                extra={"matching_id": matching_id, "user_id": user_id},
            )
            raise await self._membership_insert_error(matching_id, user_id) from e

    async def _membership_insert_error(
        self, matching_id: MatchingId, user_id: UserId,
    ) -> ConflictError | NotFoundError:
        """Tell a duplicate pair apart from a missing matching or user."""
        context = ErrorContext(matching_id=matching_id, user_id=user_id)
        if await self.has_membership(matching_id, user_id):
            return ConflictError("user already joined this matching", context=context)
        if not await self._matching_exists(matching_id):
            return NotFoundError("matching", matching_id, context=context)
        return NotFoundError("user", user_id, context=context)

    async def _matching_exists(self, matching_id: MatchingId) -> bool:
        result = await self.db.execute(
            select(Matching.id).where(Matching.id == matching_id),
        )
        return result.first() is not None

    async def remove_membership(
        self, matching_id: MatchingId, user_id: UserId,
    ) -> None:
        result = await self.db.execute(
            delete(Membership).where(
                Membership.matching_id == matching_id,
                Membership.user_id == user_id,
            ),
        )
        await self.db.commit()
        if result.rowcount == 0:
            raise NotFoundError(
                "Membership", f"{matching_id}/{user_id}",
                context=ErrorContext(matching_id=matching_id, user_id=user_id),
            )

    async def search_members(
        self, caller_id: UserId, name_pattern: str,
    ) -> Sequence[Any]:
        owned = select(Matching.id).where(Matching.owner_id == caller_id)
        joined = select(Membership.matching_id).where(
            Membership.user_id == caller_id,
        )
        result = await self.db.execute(
            select(
                User.id.label("user_id"),
                User.name,
                Membership.matching_id,
            )
            .join(Membership, Membership.user_id == User.id)
            .where(
                or_(
                    Membership.matching_id.in_(owned),
                    Membership.matching_id.in_(joined),
                ),
                User.name.ilike(_name_pattern(name_pattern), escape="\\"),
            )
            .order_by(User.name, Membership.matching_id),
        )
        return result.all()

    async def bulk_close_expired(self, now: datetime) -> int:
        result = await self.db.execute(
            update(Matching)
            .where(
                Matching.status == MatchingStatus.OPEN.value,
                Matching.expires_at <= now,
            )
            .values(status=MatchingStatus.CLOSED.value)
            .execution_options(synchronize_session=False),
        )
        await self.db.commit()
        return result.rowcount

    async def delete_matching(self, matching_id: MatchingId) -> None:
        matching = await self.find_matching(matching_id)
        if matching is None:
            raise NotFoundError("matching", matching_id)
        await self.db.delete(matching)
        await self.db.commit()
