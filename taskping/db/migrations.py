"""Database migration runner.

Migrations are numbered scripts applied in order; the applied version is
kept in SQLite's ``user_version`` pragma.
"""

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def _load_schema() -> str:
    with open(SCHEMA_PATH) as f:
        return f.read()


# (version, script) - append new entries, never edit applied ones
MIGRATIONS = [
    (1, _load_schema),
]


async def get_schema_version(db: aiosqlite.Connection) -> int:
    async with db.execute("PRAGMA user_version") as cursor:
        row = await cursor.fetchone()
        return row[0] if row else 0


async def run_migrations(db_path: Path) -> int:
    """Apply pending migrations.

    Returns:
        Schema version after migrating
    """
    async with aiosqlite.connect(db_path) as db:
        version = await get_schema_version(db)

        for target, load_script in MIGRATIONS:
            if target <= version:
                continue
            await db.executescript(load_script())
            await db.execute(f"PRAGMA user_version = {int(target)}")
            await db.commit()
            logger.info(f"Applied migration {target} to {db_path}")
            version = target

        return version
