"""Natural-language message intent extraction.

Turns lines like "text my wife I'll be late" or "send a message to
0712345678 saying hello" into a MessagingIntent.
"""

import re
from dataclasses import dataclass
from enum import Enum

from pocketshell.aliases.store import AliasStore, ContactAlias
from pocketshell.aliases.suggestions import RELATIONSHIP_WORDS
from pocketshell.telephony.numbers import is_valid_phone_number

SEND_KEYWORDS = frozenset(["send", "text", "sms", "message", "msg", "write", "compose"])

# Words never treated as a recipient even if someone aliased them
_FILLER_WORDS = SEND_KEYWORDS | {"a", "an", "my", "to"}

_TO_PATTERN = re.compile(r"\bto\s+([+]?[0-9]{7,15}|\w+)", re.IGNORECASE)
_MY_PATTERN = re.compile(r"\bmy\s+(\w+)", re.IGNORECASE)
_PHONE_PATTERN = re.compile(r"(?<![\w+])([+]?[0-9]{7,15})\b")

CONTENT_PATTERNS = [
    re.compile(r"\b(?:saying|say)\s+(.+)$", re.IGNORECASE | re.DOTALL),
    re.compile(r"(?:message|text|sms):\s*(.+)$", re.IGNORECASE | re.DOTALL),
    re.compile(r"\bthat\s+(.+)$", re.IGNORECASE | re.DOTALL),
]
_CONTENT_FILLER = re.compile(r"^(?:a\s+message|a\s+text|an\s+sms|message|text|sms)\b\s*", re.IGNORECASE)


class IntentKind(str, Enum):
    SEND_TO_ALIAS = "send_to_alias"
    SEND_TO_NUMBER = "send_to_number"
    ALIAS_NOT_FOUND = "alias_not_found"
    INVALID_NUMBER = "invalid_number"
    NEED_RECIPIENT = "need_recipient"
    NOT_A_MESSAGE_COMMAND = "not_a_message_command"


@dataclass(frozen=True)
class MessagingIntent:
    """What a messaging command asks for.

    alias/contact are set for SEND_TO_ALIAS, alias for ALIAS_NOT_FOUND,
    number for SEND_TO_NUMBER and INVALID_NUMBER. message is the body when
    the command carried one.
    """

    kind: IntentKind
    alias: str | None = None
    contact: ContactAlias | None = None
    number: str | None = None
    message: str | None = None


def _clean_word(word: str) -> str:
    return re.sub(r"[^a-z0-9]", "", word.lower())


def extract_message_content(text: str, recipient: str | None) -> str | None:
    """Pull the message body out of a command line.

    Explicit markers win ("saying ...", "message: ...", "that ..."); otherwise
    the body is whatever follows the recipient, minus filler like "a message".
    """
    for pattern in CONTENT_PATTERNS:
        match = pattern.search(text)
        if match:
            content = match.group(1).strip()
            return content or None

    if recipient:
        index = text.lower().find(recipient.lower())
        if index != -1:
            after = text[index + len(recipient):].strip()
            content = _CONTENT_FILLER.sub("", after, count=1).strip()
            if content:
                return content

    return None


class MessageIntentParser:
    """Extracts messaging intents, consulting the alias store for recipients."""

    def __init__(self, aliases: AliasStore) -> None:
        self.aliases = aliases

    def is_message_command(self, text: str) -> bool:
        """Check whether a line starts with a send keyword.

        "write" followed by something path-like is left to the file commands.
        """
        words = text.strip().lower().split()
        if not words or words[0] not in SEND_KEYWORDS:
            return False
        if words[0] == "write" and len(words) > 1 and ("/" in words[1] or "." in words[1]):
            return False
        return True

    def parse(self, text: str) -> MessagingIntent:
        """Parse a messaging command.

        Args:
            text: Raw input line

        Returns:
            MessagingIntent (NOT_A_MESSAGE_COMMAND if no send keyword is present)
        """
        words = text.strip().lower().split()
        if not any(word in SEND_KEYWORDS for word in words):
            return MessagingIntent(IntentKind.NOT_A_MESSAGE_COMMAND)

        # 1. Any registered alias, including custom ones like "dk"
        for word in words:
            clean = _clean_word(word)
            if clean and clean not in _FILLER_WORDS:
                contact = self.aliases.get(clean)
                if contact is not None:
                    return self._send_to_alias(text, clean, contact)

        recipient: str | None = None
        is_alias = False

        # 2. "to <number|name>"
        to_match = _TO_PATTERN.search(text)
        if to_match:
            candidate = to_match.group(1)
            if is_valid_phone_number(candidate):
                recipient = candidate
            else:
                recipient = candidate.lower()
                is_alias = True

        # 3. "my <relationship>"
        if recipient is None:
            my_match = _MY_PATTERN.search(text)
            if my_match and my_match.group(1).lower() in RELATIONSHIP_WORDS:
                recipient = my_match.group(1).lower()
                is_alias = True

        # 4. A phone number anywhere
        if recipient is None:
            phone_match = _PHONE_PATTERN.search(text)
            if phone_match:
                recipient = phone_match.group(1)

        # 5. A bare relationship word
        if recipient is None:
            for word in words:
                clean = re.sub(r"[^a-zé]", "", word)
                if clean in RELATIONSHIP_WORDS:
                    recipient = clean
                    is_alias = True
                    break

        message = extract_message_content(text, recipient)

        if recipient is None:
            return MessagingIntent(IntentKind.NEED_RECIPIENT, message=message)

        if is_alias:
            contact = self.aliases.get(recipient)
            if contact is not None:
                return MessagingIntent(
                    IntentKind.SEND_TO_ALIAS, alias=recipient, contact=contact, message=message
                )
            return MessagingIntent(IntentKind.ALIAS_NOT_FOUND, alias=recipient, message=message)

        if is_valid_phone_number(recipient):
            return MessagingIntent(IntentKind.SEND_TO_NUMBER, number=recipient, message=message)
        return MessagingIntent(IntentKind.INVALID_NUMBER, number=recipient)

    def _send_to_alias(self, text: str, alias: str, contact: ContactAlias) -> MessagingIntent:
        return MessagingIntent(
            IntentKind.SEND_TO_ALIAS,
            alias=alias,
            contact=contact,
            message=extract_message_content(text, alias),
        )
