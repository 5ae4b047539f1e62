"""Tests for the messaging conversation engine."""

import pytest

from pocketshell.commands.results import ErrorKind, ResultStatus
from pocketshell.messaging.engine import MessagingEngine
from pocketshell.messaging.states import ConversationStateKind
from pocketshell.telephony.carrier import SendTextResult
from pocketshell.telephony.contacts import Contact
from pocketshell.telephony.stub_carrier import StubCarrierAdapter


@pytest.fixture
def engine(adapter, contacts, aliases, message_store) -> MessagingEngine:
    return MessagingEngine(adapter, contacts, aliases, message_store)


def _sent(adapter: StubCarrierAdapter) -> list[tuple[str, str]]:
    return [(t.number, t.body) for t in adapter.sent_texts]


class TestSend:
    """Test sending with everything known up front."""

    @pytest.mark.asyncio
    async def test_alias_with_body(self, engine: MessagingEngine, adapter, message_store) -> None:
        """Test "text mom hello" sends once, immediately."""
        result = await engine.handle_input("text mom hello")

        assert result.ok
        assert result.message == "Sent to Jane (+15550001111)"
        assert _sent(adapter) == [("+15550001111", "hello")]
        assert adapter.sent_texts[0].sim_slot == 0
        assert not engine.is_active
        assert message_store.list_messages()[0].body == "hello"

    @pytest.mark.asyncio
    async def test_number_with_known_contact(self, engine: MessagingEngine, adapter) -> None:
        """Test a typed number picks up the contact's name."""
        result = await engine.handle_input("text 0712345678 on my way")

        assert result.message == "Sent to John Smith (0712345678)"
        assert _sent(adapter) == [("0712345678", "on my way")]

    @pytest.mark.asyncio
    async def test_carrier_failure(self, contacts, aliases, message_store) -> None:
        """Test a failed send reports the carrier's reason and returns to idle."""
        adapter = StubCarrierAdapter(send_text_result=SendTextResult.failed("radio off"))
        engine = MessagingEngine(adapter, contacts, aliases, message_store)

        result = await engine.handle_input("text mom hello")

        assert result.status == ResultStatus.FAILURE
        assert result.error == ErrorKind.CARRIER_FAILURE
        assert result.message == "Failed to send: radio off"
        assert engine.state.kind == ConversationStateKind.NONE
        assert engine.pending_recipient is None

    @pytest.mark.asyncio
    async def test_body_prompt(self, engine: MessagingEngine, adapter) -> None:
        """Test a missing body is asked for and an empty one is rejected."""
        result = await engine.handle_input("text mom")
        assert result.awaiting == "awaiting_message_body"
        assert result.message == "Message to Jane (+15550001111):"

        result = await engine.handle_input("   ")
        assert result.error == ErrorKind.EMPTY_MESSAGE
        assert engine.state.kind == ConversationStateKind.AWAITING_MESSAGE_BODY

        result = await engine.handle_input("dinner at 7?")

        assert result.ok
        assert _sent(adapter) == [("+15550001111", "dinner at 7?")]


class TestRecipientConversation:
    """Test multi-turn recipient resolution."""

    @pytest.mark.asyncio
    async def test_pick_from_contacts_keeps_body(self, engine: MessagingEngine, adapter) -> None:
        """Test the body given up front survives recipient selection and is sent once."""
        result = await engine.handle_input("send a message saying running late")
        assert result.awaiting == "awaiting_recipient_choice"

        result = await engine.handle_input("2")
        assert result.awaiting == "awaiting_contact_pick"

        result = await engine.handle_input("john")
        assert result.error == ErrorKind.AMBIGUOUS_TARGET
        assert result.message.splitlines()[1:3] == [
            "1. John Otieno - +254798765432",
            "2. John Smith - +254712345678",
        ]

        result = await engine.handle_input("2")

        assert result.message == "Sent to John Smith (+254712345678)"
        assert _sent(adapter) == [("+254712345678", "running late")]
        assert not engine.is_active

    @pytest.mark.asyncio
    async def test_enter_number_then_body(self, engine: MessagingEngine, adapter) -> None:
        """Test choosing to type a number, then the body."""
        await engine.handle_input("compose")
        assert (await engine.handle_input("1")).message == "Enter phone number:"

        result = await engine.handle_input("not a number")
        assert result.error == ErrorKind.INVALID_NUMBER
        assert engine.state.kind == ConversationStateKind.AWAITING_PHONE_NUMBER

        result = await engine.handle_input("0799 111 222")
        assert result.message == "Message to 0799111222:"

        await engine.handle_input("hi")

        assert _sent(adapter) == [("0799111222", "hi")]

    @pytest.mark.asyncio
    async def test_alias_choice(self, engine: MessagingEngine, adapter) -> None:
        """Test choosing an alias by name."""
        await engine.handle_input("send a message saying hi")
        await engine.handle_input("3")

        result = await engine.handle_input("boss")
        assert result.error == ErrorKind.NOT_FOUND

        await engine.handle_input("my mom")

        assert _sent(adapter) == [("+15550001111", "hi")]

    @pytest.mark.asyncio
    async def test_free_text_recipient(self, engine: MessagingEngine, adapter) -> None:
        """Test typing a name directly at the recipient menu."""
        await engine.handle_input("send a message saying hi")

        result = await engine.handle_input("grace")

        assert result.message == "Sent to Grace Wanjiku (0722000111)"

    @pytest.mark.asyncio
    async def test_free_text_no_match(self, engine: MessagingEngine) -> None:
        """Test the menu stays open when nothing matches."""
        await engine.handle_input("compose")

        result = await engine.handle_input("zed")

        assert result.status == ResultStatus.INVALID_COMMAND
        assert engine.state.kind == ConversationStateKind.AWAITING_RECIPIENT_CHOICE

    @pytest.mark.asyncio
    async def test_contact_picker_callback(self, engine: MessagingEngine, adapter) -> None:
        """Test a contact chosen in the picker resumes the flow."""
        await engine.handle_input("send a message saying see you")
        await engine.handle_input("2")

        result = await engine.on_contact_selected(
            Contact(id="c9", name="Amina", phone_number="0733000999")
        )

        assert result.message == "Sent to Amina (0733000999)"
        assert _sent(adapter) == [("0733000999", "see you")]

    @pytest.mark.asyncio
    async def test_picker_callback_when_idle(self, engine: MessagingEngine) -> None:
        """Test a stray picker callback is rejected."""
        result = await engine.on_contact_selected(Contact(id="c1", name="Jane Doe", phone_number="1"))

        assert result.status == ResultStatus.INVALID_COMMAND

    @pytest.mark.asyncio
    async def test_cancel(self, engine: MessagingEngine, adapter) -> None:
        """Test cancel abandons the conversation without sending."""
        await engine.handle_input("send a message saying hi")

        result = await engine.handle_input("cancel")

        assert result.message == "Message cancelled"
        assert not engine.is_active
        assert engine.pending_message is None
        assert adapter.sent_texts == []
        assert engine.cancel().message == "Nothing to cancel"


class TestUnknownAlias:
    """Test sending to a relationship alias that is not set up."""

    @pytest.mark.asyncio
    async def test_enter_number_saves_alias(self, engine: MessagingEngine, adapter, aliases) -> None:
        """Test giving a number stores the alias and sends the original body."""
        result = await engine.handle_input("text my wife I'll be late")
        assert result.message == (
            "Alias 'wife' is not set up yet.\n"
            "1. Pick a contact for it\n"
            "2. Enter a phone number for it\n"
            "3. Cancel"
        )

        assert (await engine.handle_input("7")).message == "Please enter 1, 2, or 3:"

        await engine.handle_input("2")
        result = await engine.handle_input("0711222333")

        assert result.ok
        assert _sent(adapter) == [("0711222333", "I'll be late")]
        assert aliases.resolve_number("wife") == "0711222333"

    @pytest.mark.asyncio
    async def test_pick_contact_saves_alias(self, engine: MessagingEngine, adapter, aliases) -> None:
        """Test picking a contact stores the alias against that contact."""
        await engine.handle_input("text my boss meeting moved")
        await engine.handle_input("1")

        result = await engine.handle_input("grace")

        assert result.message == "Sent to Grace Wanjiku (0722000111)"
        saved = aliases.get("boss")
        assert saved.contact_id == "c4"
        assert saved.contact_name == "Grace Wanjiku"

    @pytest.mark.asyncio
    async def test_cancel_choice(self, engine: MessagingEngine, aliases) -> None:
        """Test option 3 cancels without saving."""
        await engine.handle_input("text my wife hi")

        result = await engine.handle_input("3")

        assert result.message == "Message cancelled"
        assert not aliases.has("wife")


class TestConfirmation:
    """Test the opt-in confirmation step."""

    @pytest.mark.asyncio
    async def test_edit_then_confirm(self, adapter, contacts, aliases, message_store) -> None:
        """Test editing the body before confirming."""
        engine = MessagingEngine(adapter, contacts, aliases, message_store, require_confirmation=True)

        result = await engine.handle_input("text mom hello")
        assert result.awaiting == "awaiting_confirmation"
        assert result.message.startswith('Send to Jane (+15550001111): "hello"?')
        assert adapter.sent_texts == []

        assert (await engine.handle_input("edit")).message == "New message to Jane (+15550001111):"
        await engine.handle_input("hello there")
        result = await engine.handle_input("yes")

        assert result.ok
        assert _sent(adapter) == [("+15550001111", "hello there")]

    @pytest.mark.asyncio
    async def test_reject(self, adapter, contacts, aliases, message_store) -> None:
        """Test answering no."""
        engine = MessagingEngine(adapter, contacts, aliases, message_store, require_confirmation=True)
        await engine.handle_input("text mom hello")

        result = await engine.handle_input("no")

        assert result.message == "Message cancelled"
        assert adapter.sent_texts == []


class TestAliasCommands:
    """Test contact alias setup, removal and listing."""

    @pytest.mark.asyncio
    async def test_alias_to_single_contact(self, engine: MessagingEngine, aliases) -> None:
        """Test alias setup by contact name."""
        result = await engine.handle_input("alias wife = Grace")

        assert result.message == "Alias 'wife' set to Grace Wanjiku (0722000111)"
        assert aliases.get("wife").contact_id == "c4"

    @pytest.mark.asyncio
    async def test_alias_to_number(self, engine: MessagingEngine, aliases) -> None:
        """Test alias setup with a number and the short form."""
        result = await engine.handle_input("alias boss 0711 222 333")

        assert result.message == 'Alias "boss" set to 0711222333'
        assert aliases.get("boss").contact_name == "0711 222 333"

    @pytest.mark.asyncio
    async def test_alias_choose_among_contacts(self, engine: MessagingEngine, aliases) -> None:
        """Test "set <name> as <query>" with several matches."""
        result = await engine.handle_input("set bro as john")
        assert result.awaiting == "awaiting_contact_list_selection"

        result = await engine.handle_input("1")

        assert result.message == "Alias 'bro' set to John Otieno (+254798765432)"
        assert aliases.resolve_number("bro") == "+254798765432"
        assert not engine.is_active

    @pytest.mark.asyncio
    async def test_alias_no_contact(self, engine: MessagingEngine) -> None:
        """Test alias setup with no matching contact."""
        result = await engine.handle_input("alias x = nobody")

        assert result.status == ResultStatus.NOT_FOUND
        assert result.message == "No contact found for 'nobody'"

    @pytest.mark.asyncio
    async def test_remove_and_list(self, engine: MessagingEngine) -> None:
        """Test unalias and listing."""
        listing = await engine.handle_input("aliases")
        assert "  mom -> Jane (+15550001111)" in listing.message.splitlines()

        assert (await engine.handle_input("unalias mom")).message == "Alias 'mom' removed"
        assert (await engine.handle_input("unalias mom")).status == ResultStatus.NOT_FOUND

        listing = await engine.handle_input("aliases")
        assert listing.message.startswith("No aliases saved yet")

    def test_shell_alias_form_is_not_contact_setup(self, engine: MessagingEngine) -> None:
        """Test the compact name=value form is left to the shell built-in."""
        assert not engine.is_messaging_command("alias ll=ls")
        assert engine.is_messaging_command("alias wife = grace")


class TestInbox:
    """Test inbox, read, reply and close."""

    def test_inbox(self, engine: MessagingEngine) -> None:
        """Test the inbox lists threads with unread counts."""
        result = engine.show_inbox()

        assert result.message.splitlines() == [
            "Inbox (3):",
            "1. Grace Wanjiku (1 unread) - Call me when you land [May 02 08:00]",
            "2. John Smith (1 unread) - You: Yes, 1pm [May 01 12:35]",
            "3. John Otieno - Thanks! [Apr 30 18:00]",
            "Type 'read <name or number>' to open a conversation",
        ]

    @pytest.mark.asyncio
    async def test_unread(self, engine: MessagingEngine) -> None:
        """Test the unread filter."""
        result = await engine.handle_input("unread")

        assert result.message.startswith("Unread (2):")

    @pytest.mark.asyncio
    async def test_read_reply_close(self, engine: MessagingEngine, adapter, message_store) -> None:
        """Test opening a thread, replying and closing it."""
        result = await engine.handle_input("read grace")

        assert result.message.splitlines() == [
            "Conversation with Grace Wanjiku:",
            "< [May 02 08:00] Call me when you land",
            "Type 'reply <message>' to respond, 'close chat' when done",
        ]
        assert message_store.mark_read("0722000111") == 0
        assert not engine.is_active

        result = await engine.handle_input("reply landed safely")
        assert result.message == "Sent to Grace Wanjiku (0722000111)"
        assert _sent(adapter) == [("0722000111", "landed safely")]

        assert engine.is_messaging_command("close")
        result = await engine.handle_input("close")
        assert result.message == "Closed conversation with Grace Wanjiku"
        assert not engine.is_messaging_command("close")

    @pytest.mark.asyncio
    async def test_read_ambiguous_thread(self, engine: MessagingEngine) -> None:
        """Test several matching threads ask for a choice."""
        result = await engine.handle_input("read john")

        assert result.awaiting == "awaiting_thread_selection"
        assert result.message.splitlines()[:3] == [
            "2 conversations match 'john':",
            "1. John Smith (1 unread)",
            "2. John Otieno",
        ]

        result = await engine.handle_input("1")

        assert result.message.splitlines()[1:3] == [
            "< [May 01 12:30] Are we still on for lunch?",
            "> [May 01 12:35] Yes, 1pm",
        ]
        assert engine.reply_context.name == "John Smith"

    @pytest.mark.asyncio
    async def test_read_alias_without_messages(self, engine: MessagingEngine) -> None:
        """Test opening an alias with no history."""
        result = await engine.handle_input("read mom")

        assert result.message == "No messages with Jane yet. Type 'reply <message>' to start"
        assert engine.reply_context.address == "+15550001111"

    @pytest.mark.asyncio
    async def test_read_contact_without_thread(self, engine: MessagingEngine) -> None:
        """Test falling back to contact search."""
        result = await engine.handle_input("read jane")

        assert result.message.startswith("No messages with Jane Doe yet")

    @pytest.mark.asyncio
    async def test_read_unknown(self, engine: MessagingEngine) -> None:
        """Test nothing matches."""
        result = await engine.handle_input("read zed")

        assert result.status == ResultStatus.NOT_FOUND
        assert result.message == "No conversation found for 'zed'"

    @pytest.mark.asyncio
    async def test_reply_without_thread(self, engine: MessagingEngine, adapter) -> None:
        """Test reply needs an open conversation."""
        result = await engine.handle_input("reply hello")

        assert result.status == ResultStatus.INVALID_COMMAND
        assert result.message == "No open conversation. Use 'read <contact>' first"
        assert adapter.sent_texts == []

    @pytest.mark.asyncio
    async def test_empty_reply(self, engine: MessagingEngine) -> None:
        """Test an empty quick reply."""
        await engine.handle_input("read grace")

        result = await engine.handle_input("reply")

        assert result.error == ErrorKind.EMPTY_MESSAGE

    @pytest.mark.asyncio
    async def test_cancel_keeps_reply_context(self, engine: MessagingEngine) -> None:
        """Test cancelling a send leaves the open thread in place."""
        await engine.handle_input("read grace")
        await engine.handle_input("compose")

        await engine.handle_input("cancel")

        assert engine.reply_context is not None

    def test_file_reads_are_not_messaging(self, engine: MessagingEngine) -> None:
        """Test read with a file-like target is left to the file commands."""
        assert not engine.is_messaging_command("read notes.txt")
        assert not engine.is_messaging_command("read /sdcard/todo")
        assert engine.is_messaging_command("read grace")
        assert engine.is_messaging_command("inbox")
