"""Apply SQL migrations from backend/migrations.

Usage:
    python scripts/apply_migration.py              # every file, in order
    python scripts/apply_migration.py 0001_clubs_core.sql
"""

import asyncio
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from app.infra import postgres  # noqa: E402
from app.obs.logging import configure_logging  # noqa: E402

MIGRATIONS_DIR = BACKEND_ROOT / "migrations"

logger = configure_logging()


def migration_files(names: list[str]) -> list[Path]:
    if names:
        return [MIGRATIONS_DIR / name for name in names]
    return sorted(MIGRATIONS_DIR.glob("*.sql"))


async def apply_migrations(paths: list[Path]) -> None:
    pool = await postgres.get_pool()
    try:
        for path in paths:
            if not path.exists():
                raise FileNotFoundError(f"Migration file not found: {path}")
            sql = path.read_text(encoding="utf-8")
            async with pool.acquire() as conn:
                async with conn.transaction():
                    await conn.execute(sql)
            logger.info("migration_applied", extra={"migration": path.name})
    finally:
        await postgres.close_pool()


if __name__ == "__main__":
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    asyncio.run(apply_migrations(migration_files(sys.argv[1:])))
