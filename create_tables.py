"""
Database table creation script for the Contact Identity Resolver
Creates the contacts table and checks that it can be queried.
Run this after pointing DATABASE_URL (or the RDS_* settings) at your database.
"""

import asyncio
import logging
import sys

from sqlalchemy import func, select

from database import DatabaseManager, db_manager
from models import Contact

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def create_tables(manager: DatabaseManager = db_manager) -> bool:
    """
    Create all database tables defined in the models
    Returns False instead of raising so the script can report the failure
    """
    try:
        logger.info("Starting database table creation...")

        if not await manager.test_connection():
            logger.error("Database connection failed - cannot create tables")
            return False

        await manager.create_tables()

        async with manager.get_session() as session:
            count = (await session.execute(select(func.count()).select_from(Contact))).scalar_one()
            logger.info(f"Contacts table accessible - current count: {count}")

        return True

    except Exception as e:
        logger.error(f"Failed to create database tables: {e}")
        return False


async def main() -> bool:
    logger.info("Contact Identity Resolver - Database Setup")

    try:
        success = await create_tables()
    finally:
        await db_manager.dispose()

    if success:
        logger.info("Database setup completed successfully!")
        logger.info("You can now start the API server with: python main.py")
    else:
        logger.error("Database setup failed! Check your database configuration and try again")

    return success


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(main()) else 1)
