"""Relationship words offered as ready-made contact aliases."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AliasSuggestion:
    alias: str
    emoji: str
    description: str


SUGGESTED_ALIASES: list[AliasSuggestion] = [
    AliasSuggestion("wife", "👰", "Your spouse"),
    AliasSuggestion("husband", "🤵", "Your spouse"),
    AliasSuggestion("mom", "👩", "Your mother"),
    AliasSuggestion("mother", "👩", "Your mother"),
    AliasSuggestion("dad", "👨", "Your father"),
    AliasSuggestion("father", "👨", "Your father"),
    AliasSuggestion("son", "👦", "Your son"),
    AliasSuggestion("daughter", "👧", "Your daughter"),
    AliasSuggestion("brother", "👦", "Your brother"),
    AliasSuggestion("bro", "👦", "Your brother"),
    AliasSuggestion("sister", "👧", "Your sister"),
    AliasSuggestion("sis", "👧", "Your sister"),
    AliasSuggestion("boss", "💼", "Your boss/manager"),
    AliasSuggestion("bestie", "🤝", "Best friend"),
    AliasSuggestion("bff", "🤝", "Best friend forever"),
    AliasSuggestion("girlfriend", "💕", "Your girlfriend"),
    AliasSuggestion("gf", "💕", "Your girlfriend"),
    AliasSuggestion("boyfriend", "💙", "Your boyfriend"),
    AliasSuggestion("bf", "💙", "Your boyfriend"),
    AliasSuggestion("babe", "❤️", "Term of endearment"),
    AliasSuggestion("honey", "🍯", "Term of endearment"),
    AliasSuggestion("love", "💖", "Term of endearment"),
    AliasSuggestion("grandma", "👵", "Your grandmother"),
    AliasSuggestion("grandmother", "👵", "Your grandmother"),
    AliasSuggestion("grandpa", "👴", "Your grandfather"),
    AliasSuggestion("grandfather", "👴", "Your grandfather"),
    AliasSuggestion("uncle", "👨", "Your uncle"),
    AliasSuggestion("aunt", "👩", "Your aunt"),
    AliasSuggestion("cousin", "🧑", "Your cousin"),
    AliasSuggestion("partner", "💑", "Your partner"),
    AliasSuggestion("spouse", "💑", "Your spouse"),
    AliasSuggestion("home", "🏠", "Home number"),
    AliasSuggestion("work", "💼", "Work contact"),
    AliasSuggestion("doctor", "👨‍⚕️", "Your doctor"),
    AliasSuggestion("emergency", "🚨", "Emergency contact"),
]

_SUGGESTIONS_BY_ALIAS = {s.alias: s for s in SUGGESTED_ALIASES}

# Words that name a person by relationship, used to spot intended aliases
RELATIONSHIP_WORDS: frozenset[str] = frozenset(
    [s.alias for s in SUGGESTED_ALIASES] + ["friend", "nephew", "niece", "fiancé", "fiancee"]
)


def get_suggestion(alias: str) -> AliasSuggestion | None:
    return _SUGGESTIONS_BY_ALIAS.get(alias.lower())


def is_suggested_alias(alias: str) -> bool:
    return alias.lower() in _SUGGESTIONS_BY_ALIAS


def is_relationship_word(word: str) -> bool:
    return word.lower() in RELATIONSHIP_WORDS
