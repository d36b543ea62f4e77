"""
database/session.py

Builds the SQLAlchemy asynchronous engine and session factory.
Both are created by the application lifespan and kept on `app.state`;
`get_db` hands one session per request to the route handlers.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from starlette.requests import HTTPConnection


# -----------------------------------------------------
# SQLAlchemy Async Engine Initialization
# -----------------------------------------------------
def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Creates the async engine for the given database URL."""
    return create_async_engine(url, echo=echo, pool_pre_ping=not url.startswith("sqlite"))


# -----------------------------------------------------
# Session Factory for Async Database Access
# -----------------------------------------------------
def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Creates the session factory bound to the engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,  # Prevents auto-expiration of ORM objects after commit
    )


# -----------------------------------------------------
# Dependency: Get Async DB Session
# -----------------------------------------------------
async def get_db(connection: HTTPConnection) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI endpoints to provide an async DB session.
    Yields a single session per request, rolls back on exceptions, and closes cleanly.
    """
    session_factory: async_sessionmaker[AsyncSession] = connection.app.state.sessionmaker
    async with session_factory() as db:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise
