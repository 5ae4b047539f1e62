"""Command parser: turns a line of text into a structured Command."""

import re
from dataclasses import dataclass, field
from typing import Any

MULTI_COMMAND_SEPARATOR = re.compile(r";|&&")

# Verbs that cannot run without a target
_TARGET_REQUIRED = {"open", "launch", "start", "call"}
# Verbs that need both a recipient and a body
_TARGET_AND_ENTITY_REQUIRED = {"message", "sms"}


@dataclass(frozen=True)
class Command:
    """A parsed command line.

    Attributes:
        raw: The original input text
        verb: First token, lowercased ("" for empty input)
        target: First non-flag argument
        entity: Remaining non-flag arguments joined by single spaces
        flags: Values from --key=value, --key value and bare --key (as "true")
    """

    raw: str
    verb: str
    target: str | None = None
    entity: str | None = None
    flags: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.verb

    def to_dict(self) -> dict[str, Any]:
        return {
            "raw": self.raw,
            "verb": self.verb,
            "target": self.target,
            "entity": self.entity,
            "flags": dict(self.flags),
        }


def tokenize(text: str) -> list[str]:
    """Split text on whitespace, treating quoted spans as single tokens.

    Quote characters are stripped. Inside a quoted span the other quote
    character is literal. A closing quote always ends the current token.

    Args:
        text: Input text

    Returns:
        List of tokens (never containing empty strings)
    """
    tokens: list[str] = []
    current: list[str] = []
    quote_char: str | None = None

    for char in text:
        if char in ("'", '"'):
            if quote_char is None:
                quote_char = char
            elif char == quote_char:
                quote_char = None
                if current:
                    tokens.append("".join(current))
                    current = []
            else:
                current.append(char)
        elif char.isspace():
            if quote_char is not None:
                current.append(char)
            elif current:
                tokens.append("".join(current))
                current = []
        else:
            current.append(char)

    # An unterminated quote keeps whatever it collected
    if current:
        tokens.append("".join(current))

    return tokens


class CommandParser:
    """Parses shell input lines into Command objects.

    Parsing is total: every input, including empty or malformed text,
    produces a Command. Shape checks happen separately in validate().
    """

    def parse(self, text: str) -> Command:
        """Parse a single command line.

        Args:
            text: Raw input line

        Returns:
            Parsed Command (verb is "" for blank input)
        """
        tokens = tokenize(text.strip())
        if not tokens:
            return Command(raw=text, verb="")

        verb = tokens[0].lower()
        target, entity, flags = self._extract_parts(tokens[1:])
        return Command(raw=text, verb=verb, target=target, entity=entity, flags=flags)

    def parse_multiple(self, text: str) -> list[Command]:
        """Parse a line holding several commands separated by ';' or '&&'.

        Blank segments are skipped.
        """
        return [
            self.parse(segment)
            for segment in MULTI_COMMAND_SEPARATOR.split(text)
            if segment.strip()
        ]

    def validate(self, command: Command) -> bool:
        """Check that a command has the parts its verb needs.

        Args:
            command: Parsed command

        Returns:
            True if the command is well-formed
        """
        if not command.verb:
            return False
        if command.verb in _TARGET_REQUIRED:
            return command.target is not None
        if command.verb in _TARGET_AND_ENTITY_REQUIRED:
            return command.target is not None and command.entity is not None
        if command.verb == "play":
            return command.target is not None or command.entity is not None
        return True

    @staticmethod
    def _extract_parts(
        tokens: list[str],
    ) -> tuple[str | None, str | None, dict[str, str]]:
        flags: dict[str, str] = {}
        positional: list[str] = []

        i = 0
        while i < len(tokens):
            token = tokens[i]
            if token.startswith("--"):
                key = token[2:]
                if "=" in key:
                    key, value = key.split("=", 1)
                    flags[key] = value
                elif i + 1 < len(tokens) and not tokens[i + 1].startswith("--"):
                    flags[key] = tokens[i + 1]
                    i += 1
                else:
                    flags[key] = "true"
            else:
                positional.append(token)
            i += 1

        target = positional[0] if positional else None
        entity = " ".join(positional[1:]) if len(positional) > 1 else None
        return target, entity, flags
