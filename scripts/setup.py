#!/usr/bin/env python3
"""Setup script for the railfare API's SQL backend."""

import logging
import sys
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from railfare.core.config import settings
from railfare.core.database import close_db, create_db_engine, create_session_factory, init_db
from railfare.services.fare_table import FareTable
from railfare.stores.sql import SqlFareStore

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def setup_database(engine):
    """Create every table."""
    logger.info("Setting up database...")

    try:
        init_db(engine)
        logger.info("Database setup completed successfully!")

    except Exception as e:
        logger.error(f"Database setup failed: {e}")
        raise


def seed_fare_tiers(engine):
    """Load the configured default tiers into an empty fare store."""
    store = SqlFareStore(create_session_factory(engine))

    if store.load():
        logger.info("Fare tiers already exist, skipping...")
        return

    table = FareTable(store=store, default_tiers=settings.default_fare_tiers)
    for train_class, tiers in table.snapshot().items():
        logger.info(f"Seeded {len(tiers)} tiers for class {train_class}")


def main():
    """Main setup function."""
    if settings.storage_backend != "sql":
        logger.warning("RAILFARE_STORAGE_BACKEND is not 'sql'; the API will not use this database")

    logger.info(f"Starting railfare setup against {settings.database_url}")
    engine = create_db_engine(settings.database_url)

    try:
        setup_database(engine)
        seed_fare_tiers(engine)
    finally:
        close_db(engine)

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn railfare.main:app --reload")


if __name__ == "__main__":
    main()
