"""Contact alias persistence module."""

from datetime import UTC, datetime

import duckdb

from pocketshell.aliases.store import ContactAlias, normalize_alias

_COLUMNS = "alias, contact_id, contact_name, phone_number, photo_ref"


def _row_to_alias(row: tuple) -> ContactAlias:
    return ContactAlias(
        alias=row[0],
        contact_id=row[1],
        contact_name=row[2],
        phone_number=row[3],
        photo_ref=row[4],
    )


def upsert_alias(conn: duckdb.DuckDBPyConnection, alias: ContactAlias) -> ContactAlias:
    """Create or replace an alias row.

    Args:
        conn: Database connection.
        alias: Alias to store; the key is normalized to lowercase.

    Returns:
        The stored alias.
    """
    key = normalize_alias(alias.alias)
    conn.execute(
        f"""
        INSERT OR REPLACE INTO contact_aliases ({_COLUMNS}, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        [
            key,
            alias.contact_id,
            alias.contact_name,
            alias.phone_number,
            alias.photo_ref,
            datetime.now(UTC),
        ],
    )
    return ContactAlias(
        alias=key,
        contact_id=alias.contact_id,
        contact_name=alias.contact_name,
        phone_number=alias.phone_number,
        photo_ref=alias.photo_ref,
    )


def get_alias(conn: duckdb.DuckDBPyConnection, alias: str) -> ContactAlias | None:
    """Look up one alias by key (case-insensitive)."""
    row = conn.execute(
        f"SELECT {_COLUMNS} FROM contact_aliases WHERE alias = ?",
        [normalize_alias(alias)],
    ).fetchone()
    return _row_to_alias(row) if row else None


def delete_alias(conn: duckdb.DuckDBPyConnection, alias: str) -> bool:
    """Delete an alias.

    Returns:
        True if a row was removed.
    """
    key = normalize_alias(alias)
    existed = conn.execute(
        "SELECT COUNT(*) FROM contact_aliases WHERE alias = ?", [key]
    ).fetchone()[0]
    if not existed:
        return False
    conn.execute("DELETE FROM contact_aliases WHERE alias = ?", [key])
    return True


def list_aliases(conn: duckdb.DuckDBPyConnection) -> list[ContactAlias]:
    """Return all aliases ordered by key."""
    rows = conn.execute(f"SELECT {_COLUMNS} FROM contact_aliases ORDER BY alias").fetchall()
    return [_row_to_alias(row) for row in rows]
