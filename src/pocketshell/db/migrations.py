"""Database migrations for the shell's DuckDB file."""

import logging
from pathlib import Path

import duckdb

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def run_migrations(conn: duckdb.DuckDBPyConnection, migrations_dir: Path | None = None) -> list[str]:
    """Apply every migration that has not run yet, in file name order.

    Args:
        conn: DuckDB connection.
        migrations_dir: Directory of *.sql files (defaults to the bundled one).

    Returns:
        Versions applied by this call.
    """
    migrations_dir = migrations_dir or MIGRATIONS_DIR
    if not migrations_dir.exists():
        raise FileNotFoundError(f"Migrations directory not found: {migrations_dir}")

    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version TEXT PRIMARY KEY,
            applied_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)

    applied = set(
        row[0] for row in conn.execute("SELECT version FROM schema_migrations").fetchall()
    )

    newly_applied = []
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        version = migration_file.stem
        if version in applied:
            continue

        conn.execute(migration_file.read_text(encoding="utf-8"))
        conn.execute("INSERT INTO schema_migrations (version) VALUES (?)", [version])
        logger.info("Applied migration: %s", version)
        newly_applied.append(version)

    return newly_applied
