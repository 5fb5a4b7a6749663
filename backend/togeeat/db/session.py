"""Standalone sessions for code that runs outside a request (jobs, scripts).

Invariants:
    - The engine created here lives exactly as long as the `standalone_session` block
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine


@asynccontextmanager
async def standalone_session(
    database_url: str, echo: bool = False,
) -> AsyncIterator[AsyncSession]:
    """One session on a private engine, disposed on exit."""
    engine = create_async_engine(database_url, echo=echo)
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            yield session
    finally:
        await engine.dispose()
