"""Create the database and the virality tables for local development.

    python scripts/init_db.py            # create missing tables
    python scripts/init_db.py --reset    # drop and recreate every table
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import make_url

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from virality.config import get_settings
from virality.database import Base, build_engine
from virality import models  # noqa: F401


def ensure_postgres_database(database_url: str) -> bool:
    """Create the target Postgres database if missing. Returns True when created."""
    url = make_url(database_url)
    if url.get_backend_name() != "postgresql" or not url.database:
        return False

    admin_engine = create_engine(url.set(database="postgres"), isolation_level="AUTOCOMMIT")
    try:
        with admin_engine.connect() as conn:
            found = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": url.database},
            ).scalar()
            if found:
                return False
            conn.execute(text(f'CREATE DATABASE "{url.database}"'))
            return True
    finally:
        admin_engine.dispose()


def sync_tables(database_url: str, reset: bool = False) -> list[str]:
    """Create (or with ``reset`` recreate) the ORM tables; returns the tables that were missing."""
    engine = build_engine(database_url)
    try:
        existing = set(inspect(engine).get_table_names())
        if reset:
            Base.metadata.drop_all(bind=engine)
            existing = set()
        Base.metadata.create_all(bind=engine)
        return sorted(set(Base.metadata.tables) - existing)
    finally:
        engine.dispose()


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Initialize the virality database")
    parser.add_argument("--database-url", default=None, help="override DATABASE_URL")
    parser.add_argument("--reset", action="store_true", help="drop all tables first (destroys data)")
    args = parser.parse_args(argv)

    database_url = args.database_url or get_settings().database_url
    if ensure_postgres_database(database_url):
        print(f"Created database {make_url(database_url).database}")

    created = sync_tables(database_url, reset=args.reset)
    if created:
        print(f"Created tables: {', '.join(created)}")
    else:
        print("All tables already exist")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
