"""
Direct Postgres access to the Supabase database, used only for schema setup.

The API itself never opens SQL connections; it goes through the row API in
core/store.py. This module backs scripts/init_supabase.py.

Usage:
    engine = get_engine("postgresql://postgres:<password>@db.<ref>.supabase.co:5432/postgres")
    if test_connection(engine):
        create_products_table(engine, "produtos")
"""

from __future__ import annotations

import logging
import re

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from core.config import DATABASE_URL, DEFAULT_PRODUCTS_TABLE

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def get_engine(url: str | None = None) -> Engine:
    """Return an engine for the given URL, falling back to DATABASE_URL."""
    url = url or DATABASE_URL
    if not url:
        raise ValueError("DATABASE_URL is required for direct database access. Set it in your .env file.")
    return create_engine(url, pool_pre_ping=True)


def test_connection(engine: Engine) -> bool:
    """Return True if the database connection is healthy."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as exc:
        logger.error("Connection test failed: %s", exc)
        return False


def schema_statements(table: str = DEFAULT_PRODUCTS_TABLE) -> list[str]:
    """DDL for the products table, its expiration index and access policy (Postgres)."""
    if not _IDENTIFIER.match(table):
        raise ValueError(f"Invalid table name: {table!r}")

    return [
        f"""
        CREATE TABLE IF NOT EXISTS {table} (
            id BIGINT GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
            name TEXT NOT NULL CHECK (name <> ''),
            expiration_date DATE NOT NULL,
            created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
        )
        """,
        f"CREATE INDEX IF NOT EXISTS idx_{table}_expiration_date ON {table}(expiration_date)",
        f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY",
        f'CREATE POLICY "Allow public access" ON {table} FOR ALL USING (true) WITH CHECK (true)',
    ]


def create_products_table(engine: Engine, table: str = DEFAULT_PRODUCTS_TABLE) -> int:
    """
    Run every schema statement, tolerating objects that already exist.
    Returns the number of statements that executed.
    """
    executed = 0
    with engine.connect() as conn:
        for sql in schema_statements(table):
            try:
                conn.execute(text(sql))
                conn.commit()
                executed += 1
            except Exception as e:
                conn.rollback()
                if "already exists" in str(e).lower():
                    logger.info("Skipping existing object: %s", sql.split("(")[0].strip())
                else:
                    raise
    return executed


def seed_products(engine: Engine, rows: list[dict[str, str]], table: str = DEFAULT_PRODUCTS_TABLE) -> int:
    """Insert sample rows; returns how many were inserted."""
    if not _IDENTIFIER.match(table):
        raise ValueError(f"Invalid table name: {table!r}")
    if not rows:
        return 0

    with engine.begin() as conn:
        conn.execute(
            text(f"INSERT INTO {table} (name, expiration_date) VALUES (:name, :expiration_date)"),
            rows,
        )
    return len(rows)
