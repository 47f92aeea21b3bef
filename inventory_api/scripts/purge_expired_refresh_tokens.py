"""
Delete refresh tokens whose expiration has passed.

Expired tokens are already rejected by /user/refresh; this only keeps the
refresh_tokens table from growing without bound.

Run:
  python -m inventory_api.scripts.purge_expired_refresh_tokens --dry-run
  python -m inventory_api.scripts.purge_expired_refresh_tokens
"""

from __future__ import annotations

import argparse
import asyncio

import structlog

from inventory_api.core.config import settings
from inventory_api.core.logging import configure_logging
from inventory_api.db.database import build_engine, build_session_maker
from inventory_api.services.credentials import CredentialStore

logger = structlog.get_logger(__name__)


async def main(dry_run: bool = False) -> int:
    engine = build_engine(settings)
    try:
        store = CredentialStore(build_session_maker(engine), settings.store_timeout_seconds)
        n = await store.purge_expired_refresh_tokens(dry_run=dry_run)
    finally:
        await engine.dispose()

    if dry_run:
        print(f"Would delete expired refresh tokens: {n}")
    else:
        logger.info("expired_refresh_tokens_purged", count=n)
        print(f"Deleted expired refresh tokens: {n}")
    return n


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--dry-run", action="store_true", help="Count expired tokens without deleting them")
    args = parser.parse_args()

    configure_logging(settings.log_level, json=settings.log_json)
    asyncio.run(main(dry_run=args.dry_run))
