"""Initialize database schema for the analysis service.

Creates all tables and seeds ``placement_options`` from the placement
taxonomy. Run this before starting the API server.
"""

import argparse
import asyncio
import sys

from ai.placements import get_taxonomy
from sponsorship.config import settings
from sponsorship.db import AsyncSessionMaker, engine
from sponsorship.models import Base
from sponsorship.pipelines.persistence import sync_placement_options


async def init_database(drop: bool = False):
    """Create all database tables and seed the placement options."""
    print(f"Initializing database: {settings.db.url.split('@')[-1]}")

    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
            print("✓ Dropped existing tables")

        await conn.run_sync(Base.metadata.create_all)
        print("✓ Created all tables")

    taxonomy = get_taxonomy()
    async with AsyncSessionMaker() as session:
        written = await sync_placement_options(session, taxonomy)
    print(f"✓ Seeded placement options ({written} written, {len(taxonomy)} in {taxonomy.version})")

    print("\n✅ Database initialization complete!")
    print(f"Tables: {', '.join(Base.metadata.tables.keys())}")


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--drop", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()
    try:
        await init_database(drop=args.drop)
    except Exception as e:
        print(f"\n❌ Error initializing database: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
