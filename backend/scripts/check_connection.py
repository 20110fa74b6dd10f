#!/usr/bin/env python3
"""
Check a database connection and list what it can see.

Usage:
    # Via environment variables (DB_SERVER, DB_NAME, DB_USER, DB_PASSWORD, DB_AUTH)
    python -m scripts.check_connection

    # Or run from backend with venv
    cd backend && . venv/bin/activate && python -m scripts.check_connection

Opens one session with the configured driver (DB_DRIVER, default mssql),
prints the visible databases and the tables of DB_NAME, then closes it.
Nothing is written.
"""

import asyncio
import logging
import os
import sys

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from restodb.core.database import create_session
from restodb.core.errors import DriverError, classify_driver_error
from restodb.models.connection import AuthenticationMode, ConnectionProfileRequest

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def check_connection() -> None:
    """Connect with the profile from the environment and report the catalog."""
    platform = os.environ.get("DB_AUTH", "sql").lower() == "windows"
    profile = ConnectionProfileRequest(
        name="check",
        server=os.environ.get("DB_SERVER", "localhost"),
        authentication=(
            AuthenticationMode.PLATFORM_CREDENTIAL if platform
            else AuthenticationMode.SQL_CREDENTIAL
        ),
        username=os.environ.get("DB_USER", "sa"),
        password=os.environ.get("DB_PASSWORD", "-"),
        database=os.environ.get("DB_NAME", "master"),
    )

    try:
        async with create_session(profile) as session:
            databases = await session.list_databases()
            logger.info("Found %d database(s): %s", len(databases), ", ".join(databases))

            tables = await session.list_tables()
            for table in tables:
                logger.info("  %s.%s (%s)", table.schema_name, table.name, table.type)
            logger.info("%d table(s) in %s", len(tables), profile.database)
    except DriverError as e:
        logger.error("Failed (%s): %s", classify_driver_error(e).value, e)
        sys.exit(1)


def main() -> None:
    asyncio.run(check_connection())


if __name__ == "__main__":
    main()
