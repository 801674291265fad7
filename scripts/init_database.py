#!/usr/bin/env python3
"""Initialize database tables (local runs; production uses Alembic)."""

import asyncio
import sys

from loguru import logger

from app.config.database import create_engine_from_settings
from app.config.settings import settings
from app.models import Base

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database(database_url: str | None = None) -> None:
    """Create all database tables."""
    engine = create_engine_from_settings(database_url)

    logger.info("Connecting to database...")
    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    await engine.dispose()
    logger.success(
        f"Database tables created: {', '.join(sorted(Base.metadata.tables))}"
    )


if __name__ == "__main__":
    if not settings.database_url:
        logger.error("DATABASE_URL not set")
        sys.exit(1)
    asyncio.run(init_database())
