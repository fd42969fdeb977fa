"""Run database migrations using shared.migrations.runner.

Usage:
    python db_migrate.py          # Run all pending migrations
    python db_migrate.py --dry    # Show pending migrations without applying
"""

import asyncio
import logging
import sys
from pathlib import Path

# Ensure backend/ is on sys.path so shared.* is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from api.core.config import get_settings
from shared.database import DatabaseManager, PoolConfig
from shared.migrations.runner import MigrationRunner

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


async def main() -> None:
    settings = get_settings()
    db = DatabaseManager(
        settings.database_url, PoolConfig.for_service("scripts", ssl=settings.database_ssl)
    )
    await db.connect()

    try:
        runner = MigrationRunner(db.pool)

        if "--dry" in sys.argv:
            pending = await runner.pending()
            print(f"Pending: {len(pending)}")
            for version in pending:
                print(f"  -> {version}")
            if not pending:
                print("Database is up to date.")
        else:
            newly_applied = await runner.run_pending()
            print(f"Applied {len(newly_applied)} migration(s).")
    finally:
        await db.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
