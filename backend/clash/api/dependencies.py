"""
FastAPI dependency injection for database sessions.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from clash.storage.session import _get_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides an async database session.

    Usage:
        @app.get("/api/calls")
        async def list_calls(db: AsyncSession = Depends(get_db)):
            ...

    The session is closed after the request.
    """
    factory = _get_session_factory()
    session = factory()
    try:
        yield session
    finally:
        await session.close()
