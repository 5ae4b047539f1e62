"""Messaging conversation engine, intents and inbox."""

from pocketshell.messaging.engine import MessagingEngine
from pocketshell.messaging.inbox import InboxConversation, build_inbox, format_inbox, format_thread
from pocketshell.messaging.intents import IntentKind, MessageIntentParser, MessagingIntent
from pocketshell.messaging.states import (
    ConversationState,
    ConversationStateKind,
    Recipient,
    ReplyContext,
    SelectionPurpose,
)

__all__ = [
    "ConversationState",
    "ConversationStateKind",
    "InboxConversation",
    "IntentKind",
    "MessageIntentParser",
    "MessagingEngine",
    "MessagingIntent",
    "Recipient",
    "ReplyContext",
    "SelectionPurpose",
    "build_inbox",
    "format_inbox",
    "format_thread",
]
