"""DuckDB-backed alias store."""

import logging

import duckdb

from pocketshell.aliases.store import AliasStore, ContactAlias
from pocketshell.db.contact_aliases import delete_alias, get_alias, list_aliases, upsert_alias
from pocketshell.logging_utils import log_info

logger = logging.getLogger(__name__)


class DuckDBAliasStore(AliasStore):
    """Alias store persisted in the contact_aliases table.

    The connection must already have migrations applied (see init_db).
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self.conn = conn

    def get(self, alias: str) -> ContactAlias | None:
        return get_alias(self.conn, alias)

    def set(self, alias: ContactAlias) -> ContactAlias:
        stored = upsert_alias(self.conn, alias)
        log_info(logger, "Alias saved", alias=stored.alias, number=stored.phone_number)
        return stored

    def remove(self, alias: str) -> bool:
        removed = delete_alias(self.conn, alias)
        if removed:
            log_info(logger, "Alias removed", alias=alias.lower())
        return removed

    def all(self) -> dict[str, ContactAlias]:
        return {a.alias: a for a in list_aliases(self.conn)}
