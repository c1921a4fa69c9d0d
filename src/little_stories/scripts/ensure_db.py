"""Bootstrap the configured database for local development.

PostgreSQL URLs get their database created through the maintenance database
when missing; SQLite files are created on first connect. With
`--create-tables` the ORM schema, rating triggers included, is created too.
"""
from __future__ import annotations

import argparse
import sys
from urllib.parse import urlsplit, urlunsplit

import psycopg
from psycopg import sql

from little_stories.core.settings import settings


def normalize_to_psycopg(uri: str) -> str:
    """Return a PostgreSQL URI suitable for psycopg.connect().

    SQLAlchemy driver suffixes (`postgresql+psycopg://`) and surrounding
    quotes are stripped.
    """
    uri = (uri or "").strip().strip("'\"")
    if not uri:
        raise ValueError("DATABASE_URL is empty")
    parts = urlsplit(uri)
    scheme = "postgresql" if parts.scheme.startswith("postgresql") else parts.scheme
    return urlunsplit((scheme, parts.netloc, parts.path, parts.query, parts.fragment))


def ensure_postgres_database(db_url: str) -> bool:
    """Create the target PostgreSQL database if missing; return True if created."""
    parts = urlsplit(normalize_to_psycopg(db_url))
    target_db = parts.path.lstrip("/") or "postgres"
    admin_url = urlunsplit(("postgresql", parts.netloc, "/postgres", parts.query, ""))

    with psycopg.connect(admin_url, autocommit=True) as conn, conn.cursor() as cur:
        cur.execute("SELECT 1 FROM pg_database WHERE datname = %s", (target_db,))
        if cur.fetchone() is not None:
            print(f"[ensure_db] database {target_db} already exists")
            return False
        cur.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(target_db)))
        print(f"[ensure_db] created database {target_db}")
        return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Ensure the configured database exists")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create tables and rating triggers from the ORM metadata.",
    )
    parser.add_argument(
        "--drop-tables",
        action="store_true",
        help="Drop all tables before creating them again (implies --create-tables).",
    )
    args = parser.parse_args(argv)

    url = settings.effective_database_url
    try:
        if url.startswith("postgresql"):
            ensure_postgres_database(url)
        if args.drop_tables or args.create_tables:
            # Imported late: the engine binds to the URL at import time.
            from little_stories.db.session import create_tables, drop_tables

            if args.drop_tables:
                drop_tables()
                print("[ensure_db] dropped all tables")
            create_tables()
            print("[ensure_db] tables are in place")
    except Exception as exc:
        print(f"[ensure_db] ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
