"""
Session storage initialization.

Creates the session database and the expired sessions view.
Idempotent - safe to run multiple times.

Usage:
    python -m cloudant_sessions [--db sessions] [--log-level DEBUG]

Environment variables:
    CLOUDANT_URL                Document store URL (default: http://localhost:5984)
    CLOUDANT_APIKEY             IAM API key, or
    CLOUDANT_USERNAME / CLOUDANT_PASSWORD for basic auth
"""

import argparse
import asyncio
import logging
import sys

from cloudant_sessions.client import CloudantClient
from cloudant_sessions.config import Settings, StoreOptions
from cloudant_sessions.exceptions import StoreError
from cloudant_sessions.store import CloudantSessionStore

logger = logging.getLogger("cloudant_sessions")


async def init_storage(settings: Settings) -> None:
    async with CloudantClient.from_settings(settings) as client:
        store = CloudantSessionStore(client, StoreOptions.from_settings(settings))
        await store.initialize()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create the Cloudant session database and view")
    parser.add_argument("--db", help="Session database name (overrides SESSION_DB)")
    parser.add_argument("--log-level", help="Logging level (overrides LOG_LEVEL)")
    args = parser.parse_args(argv)

    overrides = {}
    if args.db:
        overrides["session_db"] = args.db
    if args.log_level:
        overrides["log_level"] = args.log_level
    settings = Settings(**overrides)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(init_storage(settings))
    except StoreError as e:
        logger.error("Session storage initialization failed: %s", e)
        return 1

    logger.info("Session storage ready in %s", settings.session_db)
    return 0


if __name__ == "__main__":
    sys.exit(main())
