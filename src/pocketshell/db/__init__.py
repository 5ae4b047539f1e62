"""DuckDB persistence for the shell."""

from pocketshell.db.connection import get_connection, get_db_path, init_db

__all__ = ["get_connection", "get_db_path", "init_db"]
