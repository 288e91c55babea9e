"""
Database connection and session management for the Contact Identity Resolver
This module sets up the async SQLAlchemy engine and hands out sessions
and atomic transactions. Supports local PostgreSQL, AWS RDS and SQLite
(for local runs and tests).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config import settings
from models import Base, create_database_engine

# Configure logging
logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Database connection manager that handles the async engine,
    session creation, and connection lifecycle management
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.get_active_database_url()
        self.engine = None
        self.SessionLocal = None
        self._initialize_database()

    def _initialize_database(self):
        """Initialize database engine and session factory"""
        try:
            logger.info(f"Initializing database connection to: {self.database_url.split('@')[-1]}")

            self.engine = create_database_engine(self.database_url)

            self.SessionLocal = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,  # Responses are built from objects after commit
                autoflush=False  # Repository flushes explicitly
            )

            logger.info("Database connection initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize database connection: {e}")
            raise

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @property
    def supports_advisory_locks(self) -> bool:
        return self.dialect_name == "postgresql"

    async def create_tables(self):
        """Create all database tables defined in models"""
        try:
            logger.info("Creating database tables...")
            async with self.engine.begin() as connection:
                await connection.run_sync(Base.metadata.create_all)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to create database tables: {e}")
            raise

    async def test_connection(self) -> bool:
        """Test database connection"""
        try:
            async with self.engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
                logger.debug("Database connection test successful")
                return True
        except Exception as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """
        Context manager for plain database sessions with automatic cleanup
        Usage:
            async with db_manager.get_session() as session:
                # read-only database operations
        """
        session = self.SessionLocal()
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            await session.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Context manager for one atomic unit of work
        Commits when the block exits normally and rolls back everything
        written inside it on any error
        """
        async with self.SessionLocal() as session:
            async with session.begin():
                yield session

    async def dispose(self):
        await self.engine.dispose()


# Global database manager instance
db_manager = DatabaseManager()
