"""Chat service layer for the prompt-engineering assistant.

Handles:
- Chat turns over either store (persisted conversations or in-memory sessions)
- Bounded context windows built from recent history
- Reply sanitization
- The standalone assistant (no stored conversation)

A turn never fails because of the model: if the reply cannot be generated
the fixed apology is stored as the assistant message instead.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from promptpolish.config import settings
from promptpolish.core.errors import ValidationError
from promptpolish.core.security import Identity
from promptpolish.services.llm_service import LLMClient

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "Sorry, I encountered an error while processing your request. Please try again."

_LEADING_EMPHASIS = re.compile(r"^[ \t]*\*+[ \t]*", re.MULTILINE)
_BLANK_LINE_RUNS = re.compile(r"(?:[ \t]*\n){3,}")


@dataclass(frozen=True)
class TurnResult:
    user_message: Any
    reply_message: Any


def last_n(messages: Sequence[Any], n: int) -> list[Any]:
    """The last n messages, oldest first."""
    if n <= 0:
        return []
    return list(messages[-n:])


def format_context(messages: Iterable[Any]) -> str:
    """Speaker-labeled transcript, one entry per message in the given order."""
    return "\n\n".join(
        f"{'User' if msg.is_user else 'AI'}: {msg.content.strip()}" for msg in messages
    )


def sanitize_reply(text: str) -> str:
    """Strip leading emphasis markers per line and collapse runs of blank lines."""
    text = _LEADING_EMPHASIS.sub("", text)
    text = _BLANK_LINE_RUNS.sub("\n\n", text)
    return text.strip()


def build_chat_prompt(context: str, content: str) -> str:
    return f"""You are an expert prompt enhancer called PromptPolish AI. Your job is to help users create better prompts for any purpose.

Recent conversation context:
{context or "(no previous messages)"}

User's message: "{content}"

Respond in a helpful, friendly manner. If the user is asking about how to improve a prompt, provide specific guidance on improving clarity, specificity, structure, and effectiveness. If they share a prompt for enhancement, analyze it and suggest improvements."""


class ChatService:
    """Service layer for chat operations."""

    def __init__(
        self,
        llm: LLMClient,
        context_window: Optional[int] = None,
        assistant_window: Optional[int] = None,
    ):
        self.llm = llm
        self.context_window = settings.CHAT_CONTEXT_WINDOW if context_window is None else context_window
        self.assistant_window = (
            settings.ASSISTANT_CONTEXT_WINDOW if assistant_window is None else assistant_window
        )

    def post_message(self, store: Any, conversation_id: Any, identity: Identity, content: str) -> TurnResult:
        """
        Run one chat turn.

        Flow:
        1. Validate content and ownership (nothing stored on failure)
        2. Store user message
        3. Build context from the messages preceding it
        4. Generate and sanitize reply, or fall back to the apology
        5. Store assistant reply

        Args:
            store: ConversationStore or InMemorySessionStore
            conversation_id: Conversation or chat session id
            identity: Authenticated caller
            content: User message content

        Returns:
            TurnResult with the stored user message and reply

        Raises:
            ValidationError: If content is empty
            NotFound: If the conversation does not exist
            AccessDenied: If the caller does not own it
        """
        if not content or not content.strip():
            raise ValidationError.for_field("content", "Message content cannot be empty")

        conversation = store.get_owned(conversation_id, identity.user_id)

        history = store.list_messages(conversation)
        user_msg = store.append_message(conversation, content, is_user=True)

        prompt = build_chat_prompt(format_context(last_n(history, self.context_window)), content)
        reply = self._generate_reply(prompt)

        reply_msg = store.append_message(conversation, reply, is_user=False)

        logger.info(
            f"Chat turn processed: user={identity.user_id}, conversation={conversation_id}, "
            f"message_id={user_msg.id}, response_id={reply_msg.id}"
        )
        return TurnResult(user_message=user_msg, reply_message=reply_msg)

    def assist(self, message: str, history: Sequence[Any]) -> str:
        """
        Answer a message outside any stored conversation.

        `history` is supplied by the client; only its last
        `assistant_window` entries are sent to the model.
        """
        if not message or not message.strip():
            raise ValidationError.for_field("message", "Message is required")

        prompt = build_chat_prompt(format_context(last_n(history, self.assistant_window)), message)
        return self._generate_reply(prompt)

    def _generate_reply(self, prompt: str) -> str:
        try:
            reply = sanitize_reply(self.llm.complete(prompt))
        except Exception as e:
            logger.exception(f"Reply generation failed: {str(e)}")
            return APOLOGY_MESSAGE

        if not reply:
            logger.error("Model returned an empty reply")
            return APOLOGY_MESSAGE
        return reply
