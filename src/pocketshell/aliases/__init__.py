"""Contact aliases: durable short names for contacts.

The DuckDB-backed store lives in pocketshell.aliases.duckdb_store.
"""

from pocketshell.aliases.store import AliasStore, ContactAlias, InMemoryAliasStore, normalize_alias
from pocketshell.aliases.suggestions import (
    RELATIONSHIP_WORDS,
    SUGGESTED_ALIASES,
    AliasSuggestion,
    get_suggestion,
    is_relationship_word,
    is_suggested_alias,
)

__all__ = [
    "AliasStore",
    "AliasSuggestion",
    "ContactAlias",
    "InMemoryAliasStore",
    "RELATIONSHIP_WORDS",
    "SUGGESTED_ALIASES",
    "get_suggestion",
    "is_relationship_word",
    "is_suggested_alias",
    "normalize_alias",
]
