"""
==============================================================================
Database Initialization Module
==============================================================================

Database initialization utilities for the scan store.

Initialization Flow:
-------------------
1. Create all tables from ORM models
2. Verify the scan table is queryable
3. Verify the connection and log the status

Usage:
------
    from app.db import init_db

    init_db()

==============================================================================
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.db.database import DatabaseManager
from app.db.models import ScannedCode


# Module logger
logger = logging.getLogger(__name__)


class DatabaseInitializer:
    """
    Database initialization manager.

    Example:
        >>> initializer = DatabaseInitializer()
        >>> initializer.initialize()
    """

    def __init__(self) -> None:
        self._db_manager = DatabaseManager()
        self._settings = get_settings()

    def create_tables(self) -> None:
        """Create all database tables."""
        logger.info("Creating database tables...")
        self._db_manager.create_tables()
        logger.info("✅ Database tables created successfully")

    def verify_tables(self) -> bool:
        """
        Verify that the scan table exists and is queryable.

        Returns:
            True if the table answers a query, False otherwise
        """
        session = self._db_manager.get_session()
        try:
            session.query(ScannedCode).first()
            logger.debug("Database tables verified successfully")
            return True
        except SQLAlchemyError as e:
            logger.error(f"Table verification failed: {e}")
            return False
        finally:
            session.close()

    def initialize(self) -> None:
        """Run the full initialization sequence."""
        logger.info("=" * 60)
        logger.info("Initializing database...")
        logger.info("=" * 60)

        self.create_tables()

        if self.verify_tables() and self._db_manager.verify_connection():
            logger.info("✅ Database connection verified")
        else:
            logger.warning("⚠️ Database connection check failed")

        logger.info("Database initialization complete")

    def reset(self) -> None:
        """
        Drop and recreate all tables.

        WARNING: Deletes every stored scan. Refused in production.
        """
        if self._settings.is_production:
            logger.error("Cannot reset database in production!")
            return

        logger.warning("RESETTING DATABASE - ALL SCANS WILL BE LOST")
        self._db_manager.drop_tables()
        self.create_tables()
        logger.warning("Database reset complete")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def init_db() -> None:
    """Initialize the database at application startup."""
    initializer = DatabaseInitializer()
    initializer.initialize()


def reset_db() -> None:
    """Reset the database. Development only."""
    initializer = DatabaseInitializer()
    initializer.reset()
