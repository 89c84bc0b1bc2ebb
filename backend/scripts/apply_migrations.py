import asyncio
import os
import sys
from pathlib import Path

# Ensure backend path is in sys.path
BACKEND_DIR = Path(__file__).resolve().parent.parent
sys.path.append(str(BACKEND_DIR))

from app.infra.postgres import close_pool, get_pool

MIGRATIONS_DIR = BACKEND_DIR / "infra" / "migrations"


async def main() -> None:
    files = sorted(MIGRATIONS_DIR.glob("*.sql"))
    if not files:
        print(f"No migrations found in {MIGRATIONS_DIR}")
        return

    pool = await get_pool()
    async with pool.acquire() as conn:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version TEXT PRIMARY KEY,
                applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
            """
        )
        applied = {row["version"] for row in await conn.fetch("SELECT version FROM schema_migrations")}
        for path in files:
            version = path.name.split("_", 1)[0]
            if version in applied:
                print(f"Skipping {path.name} (already applied)")
                continue
            print(f"Applying {path.name}...")
            async with conn.transaction():
                await conn.execute(path.read_text(encoding="utf-8"))
                await conn.execute("INSERT INTO schema_migrations (version) VALUES ($1)", version)
            print(f"Finished {path.name}")
    await close_pool()


if __name__ == "__main__":
    if os.environ.get("POSTGRES_URL") is None and os.environ.get("DATABASE_URL") is None:
        print("POSTGRES_URL not set; using the default local database")
    asyncio.run(main())
