import pytest

from promptpolish.core.errors import AccessDenied, NotFound, UpstreamError, ValidationError
from promptpolish.core.security import Identity
from promptpolish.schemas.chat import HistoryEntry
from promptpolish.services.chat_service import (
    APOLOGY_MESSAGE,
    ChatService,
    format_context,
    last_n,
    sanitize_reply,
)

ALICE = Identity(user_id="1")
BOB = Identity(user_id="2")


def _labelled_lines(prompt):
    return [line for line in prompt.splitlines() if line.startswith(("User: ", "AI: "))]


@pytest.fixture
def service(llm):
    return ChatService(llm, context_window=10, assistant_window=5)


@pytest.fixture
def chat(session_store):
    return session_store.create_conversation(ALICE.user_id)


def test_last_n_keeps_most_recent_in_order():
    assert last_n([1, 2, 3, 4], 2) == [3, 4]
    assert last_n([1, 2], 5) == [1, 2]
    assert last_n([1, 2], 0) == []


def test_format_context_labels_speakers(session_store, chat):
    session_store.append_message(chat, "Improve my prompt", is_user=True)
    session_store.append_message(chat, "Sure, share it.", is_user=False)

    context = format_context(session_store.list_messages(chat))

    assert context == "User: Improve my prompt\n\nAI: Sure, share it."


def test_sanitize_strips_leading_emphasis_and_collapses_blank_lines():
    raw = "**Enhanced**: a story\n\n\n\n* tip one\n  ** tip two\n \n\t\nDone\n"

    assert sanitize_reply(raw) == "Enhanced**: a story\n\ntip one\ntip two\n\nDone"


def test_sanitize_keeps_single_blank_lines():
    assert sanitize_reply("  one\n\ntwo  ") == "one\n\ntwo"


def test_turn_appends_user_then_reply(service, session_store, chat, llm):
    llm.queue("* Try adding a word count.\n\n\n\nGood luck.")

    turn = service.post_message(session_store, chat.id, ALICE, "Improve: write a story")

    messages = session_store.list_messages(chat)
    assert [m.is_user for m in messages] == [True, False]
    assert turn.user_message.content == "Improve: write a story"
    assert turn.reply_message.content == "Try adding a word count.\n\nGood luck."


def test_model_failure_still_completes_the_turn(service, session_store, chat, llm):
    llm.queue(UpstreamError(), RuntimeError("boom"))

    service.post_message(session_store, chat.id, ALICE, "first")
    turn = service.post_message(session_store, chat.id, ALICE, "second")

    messages = session_store.list_messages(chat)
    assert len(messages) == 4
    assert turn.reply_message.content == APOLOGY_MESSAGE
    assert [m.content for m in messages if not m.is_user] == [APOLOGY_MESSAGE, APOLOGY_MESSAGE]


def test_empty_model_reply_becomes_apology(service, session_store, chat, llm):
    llm.queue("  \n\n ")

    turn = service.post_message(session_store, chat.id, ALICE, "hello")

    assert turn.reply_message.content == APOLOGY_MESSAGE


def test_other_owner_is_denied_and_nothing_appended(service, session_store, chat, llm):
    with pytest.raises(AccessDenied):
        service.post_message(session_store, chat.id, BOB, "let me in")

    assert session_store.list_messages(chat) == []
    assert llm.prompts == []


def test_unknown_chat_is_not_found(service, session_store):
    with pytest.raises(NotFound):
        service.post_message(session_store, "missing", ALICE, "hello")


@pytest.mark.parametrize("content", ["", "   ", "\n\t"])
def test_blank_content_is_rejected(service, session_store, chat, content):
    with pytest.raises(ValidationError):
        service.post_message(session_store, chat.id, ALICE, content)

    assert session_store.list_messages(chat) == []


def test_context_window_is_bounded_to_last_ten(service, session_store, chat, llm):
    for i in range(30):
        session_store.append_message(chat, f"m{i}", is_user=i % 2 == 0)

    service.post_message(session_store, chat.id, ALICE, "latest question")

    prompt = llm.prompts[-1]
    assert len(_labelled_lines(prompt)) == 10
    assert "m20" in prompt and "m29" in prompt
    assert "m19" not in prompt
    assert 'User\'s message: "latest question"' in prompt


def test_short_history_is_sent_whole(service, session_store, chat, llm):
    service.post_message(session_store, chat.id, ALICE, "one")
    service.post_message(session_store, chat.id, ALICE, "two")

    assert len(_labelled_lines(llm.prompts[0])) == 0
    assert len(_labelled_lines(llm.prompts[1])) == 2


def test_assistant_window_is_bounded_to_last_five(service, llm):
    history = [
        HistoryEntry(role="user" if i % 2 == 0 else "assistant", content=f"h{i}") for i in range(12)
    ]

    reply = service.assist("what next?", history)

    prompt = llm.prompts[-1]
    assert reply == llm.default
    assert len(_labelled_lines(prompt)) == 5
    assert "h7" in prompt and "h6" not in prompt


def test_assistant_failure_returns_apology(service, llm):
    llm.queue(UpstreamError())

    assert service.assist("hi", []) == APOLOGY_MESSAGE
