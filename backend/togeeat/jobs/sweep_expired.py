"""Expiry Sweep Job — closes every OPEN matching whose time window has elapsed.

Invariants:
    - One run = one conditional bulk UPDATE; safe to run twice or to skip a run
    - Uses its own engine: never shares a pool with the API process

Usage:
    python -m togeeat.jobs.sweep_expired     # e.g. every minute from cron
    togeeat-sweep                            # same, via the installed script
"""

import asyncio
import logging

from togeeat.config import get_settings
from togeeat.db.session import standalone_session
from togeeat.infrastructure.matching_repository import SqlMatchingRepository
from togeeat.infrastructure.observability import setup_logging
from togeeat.services.matching_lifecycle import MatchingLifecycle

logger = logging.getLogger(__name__)


async def run_sweep(database_url: str | None = None) -> int:
    settings = get_settings()
    async with standalone_session(database_url or settings.database_url) as db:
        lifecycle = MatchingLifecycle(SqlMatchingRepository(db), settings)
        return await lifecycle.sweep_expired()


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    closed = asyncio.run(run_sweep())
    logger.info(f"Sweep finished, {closed} matching(s) closed", extra={"closed_count": closed})


if __name__ == "__main__":
    main()
