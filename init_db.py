#!/usr/bin/env python
"""
Initialize database tables from SQLAlchemy models.
Development helper; deployed databases are migrated with Alembic.
"""

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load .env file explicitly (override any existing env vars)
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path, override=True)

from sqlalchemy.exc import SQLAlchemyError  # noqa: E402

from tasktracker.core.config import settings  # noqa: E402
from tasktracker.core.db import close_db, init_db  # noqa: E402
import tasktracker.models  # noqa: E402,F401  (registers tables on Base.metadata)


async def main() -> bool:
    """Create all tables defined in models."""
    print(f"Using database: {settings.async_database_url}")
    try:
        await init_db()
        print("Database tables created successfully!")
        return True
    except SQLAlchemyError as e:
        print(f"Error creating tables: {e}")
        return False
    finally:
        await close_db()


if __name__ == "__main__":
    print("Initializing database...")
    success = asyncio.run(main())
    sys.exit(0 if success else 1)
