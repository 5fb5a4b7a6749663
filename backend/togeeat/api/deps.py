"""FastAPI dependencies — wire services to the request-scoped DB session."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from togeeat.config import Settings, get_settings
from togeeat.infrastructure.database import get_db
from togeeat.infrastructure.matching_repository import SqlMatchingRepository
from togeeat.services.matching_lifecycle import Clock, MatchingLifecycle, utc_now
from togeeat.services.membership_manager import MembershipManager


def get_clock() -> Clock:
    """Clock dependency — overridden in tests to freeze or advance time."""
    return utc_now


def get_repository(db: AsyncSession = Depends(get_db)) -> SqlMatchingRepository:
    return SqlMatchingRepository(db)


def get_lifecycle(
    repo: SqlMatchingRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> MatchingLifecycle:
    return MatchingLifecycle(repo, settings, clock)


def get_membership_manager(
    repo: SqlMatchingRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
) -> MembershipManager:
    return MembershipManager(repo, clock)
