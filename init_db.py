import asyncio
import sys
import os

# Add the current directory to the sys.path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from sqlalchemy import text
from daybook.core.database import engine, Base
from daybook.models import entry, user_setting, user

async def init_db():
    print("Starting Database Initialization...", flush=True)

    try:
        async with engine.begin() as conn:
            # Models are imported above so they are registered with Base.metadata
            print("Creating tables (users, user_settings, entries)...", flush=True)
            await conn.run_sync(Base.metadata.create_all)

        print("SUCCESS: All tables created successfully!", flush=True)

        print("Testing connection...", flush=True)
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT COUNT(*) FROM entries"))
            print(f"Entries currently stored: {result.scalar_one()}", flush=True)

    except Exception as e:
        print(f"ERROR: Database initialization failed: {e}", flush=True)
        if "ssl" in str(e).lower():
            print("Hint: hosted Postgres usually requires SSL; check DATABASE_URL.", flush=True)
        raise
    finally:
        await engine.dispose()

if __name__ == "__main__":
    asyncio.run(init_db())
