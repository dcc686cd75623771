"""
Create the database tables and seed the reference data.

Usage:
    python -m scripts.init_db [--no-seed]
"""

import argparse
import asyncio
import logging
import os
import sys

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.database import async_session_maker, create_tables, dispose_engine
from core.logging import setup_logging
from ingestion.services.reference_data import ReferenceDataSeeder
from storage.postgres import PostgresStore

logger = logging.getLogger(__name__)


async def init_database(seed: bool = True):
    logger.info("Creating tables...")
    try:
        await create_tables()
        if seed:
            result = await ReferenceDataSeeder(PostgresStore(async_session_maker)).seed()
            logger.info(result["message"])
    finally:
        await dispose_engine()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialise the football ingestion database")
    parser.add_argument("--no-seed", action="store_true", help="Skip positions/windows seeding")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(init_database(seed=not args.no_seed))
