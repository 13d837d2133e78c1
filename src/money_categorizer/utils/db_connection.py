"""
Database connection utilities
"""
from pathlib import Path
from typing import Optional

import psycopg2

from ..config import Settings, load_settings
from ..core.store import PostgresTransactionStore
from ..errors import StoreError


SCHEMA_FILE = Path(__file__).parent.parent / "db" / "schema.sql"


def get_db_connection(settings: Optional[Settings] = None):
    """
    Get database connection using environment-derived settings

    Args:
        settings: Settings to use (default: load_settings())

    Returns:
        psycopg2 connection object

    Raises:
        StoreError: If the connection cannot be established
    """
    settings = settings or load_settings()
    try:
        return psycopg2.connect(
            host=settings.db_host,
            port=settings.db_port,
            database=settings.db_name,
            user=settings.db_user,
            password=settings.db_password,
        )
    except psycopg2.Error as e:
        raise StoreError(f"Database connection failed: {e}") from e


def open_store(settings: Optional[Settings] = None) -> PostgresTransactionStore:
    """Connect and wrap the connection in a PostgresTransactionStore"""
    return PostgresTransactionStore(get_db_connection(settings))


def apply_schema(conn, schema_file: Path = SCHEMA_FILE):
    """Create tables and indexes that don't exist yet"""
    sql = schema_file.read_text()

    cursor = conn.cursor()
    try:
        cursor.execute(sql)
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        raise StoreError(f"Failed to apply schema: {e}") from e
    finally:
        cursor.close()
