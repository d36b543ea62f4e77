"""
init_db.py

Initializes the database by creating all tables defined in the SQLAlchemy models.
Used for setting up the initial schema in the connected database.

    python -m sosauto.database.init_db
"""

import asyncio

from sqlalchemy.ext.asyncio import AsyncEngine

from sosauto.core.config import settings
from sosauto.database import models  # noqa: F401  registers every mapped table
from sosauto.database.base import Base
from sosauto.database.session import build_engine


async def init_db(engine: AsyncEngine) -> None:
    """
    Creates all database tables based on SQLAlchemy models.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _main() -> None:
    engine = build_engine(settings.db_url)
    try:
        await init_db(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(_main())
