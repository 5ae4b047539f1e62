"""DuckDB connection for the contact alias store."""

import logging
import os
from pathlib import Path

import duckdb

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


def get_db_path() -> str:
    """Resolve the alias database path.

    DUCKDB_PATH wins; otherwise the file lives under POCKETSHELL_HOME
    (default: ./data).
    """
    explicit = os.getenv("DUCKDB_PATH")
    if explicit:
        return explicit
    home = os.getenv("POCKETSHELL_HOME", "data")
    return str(Path(home).expanduser() / "pocketshell.db")


def get_connection(
    db_path: str | None = None, read_only: bool = False
) -> duckdb.DuckDBPyConnection:
    """Open a DuckDB connection, creating the parent directory for file databases.

    Args:
        db_path: Database file, ":memory:", or None for get_db_path().
        read_only: Open the file read-only.

    Returns:
        DuckDB connection object.
    """
    db_path = db_path or get_db_path()
    if db_path != MEMORY:
        db_path = str(Path(db_path).expanduser())
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(db_path, read_only=read_only)


def init_db(db_path: str | None = None) -> duckdb.DuckDBPyConnection:
    """Open the alias database and bring its schema up to date."""
    from pocketshell.db.migrations import run_migrations

    conn = get_connection(db_path=db_path)
    applied = run_migrations(conn)
    if applied:
        logger.info("Alias database %s migrated: %s", db_path or get_db_path(), ", ".join(applied))
    return conn
