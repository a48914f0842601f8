"""Database initialization script."""

import asyncio
import logging

from config.settings import get_settings
from config.logging_config import setup_logging
from database.connection import Database

logger = logging.getLogger(__name__)


async def main():
    """Initialize database tables and default lessons."""
    settings = get_settings()
    db = Database(settings.database_url)
    try:
        logger.info("Initializing database tables...")
        await db.init(seed=True)
        logger.info("Database ready")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise
    finally:
        await db.close()


def run():
    setup_logging(get_settings().log_level)
    asyncio.run(main())


if __name__ == "__main__":
    run()
