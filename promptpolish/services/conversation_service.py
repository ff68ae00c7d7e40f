"""Persisted conversations and messages.

All reads are scoped to the caller: a conversation owned by someone else
raises AccessDenied, a missing one raises NotFound.
"""
import logging
from typing import Optional

from sqlmodel import Session, select

from promptpolish.core.errors import AccessDenied, NotFound
from promptpolish.core.timeutils import utcnow
from promptpolish.database import commit
from promptpolish.models.conversation import DEFAULT_CONVERSATION_TITLE, Conversation, Message

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 60


def title_from_message(content: str) -> str:
    """First sentence (or question) of a message, capped at 60 characters."""
    title = content.strip()
    if "?" in title:
        title = title.split("?")[0] + "?"
    elif "." in title:
        title = title.split(".")[0]
    title = title.strip() or DEFAULT_CONVERSATION_TITLE
    return title[:TITLE_MAX_LENGTH] + "..." if len(title) > TITLE_MAX_LENGTH else title


class ConversationStore:
    """Conversation/message persistence bound to one database session."""

    def __init__(self, session: Session):
        self.session = session

    def create_conversation(self, owner_id: str, title: Optional[str] = None) -> Conversation:
        conversation = Conversation(user_id=owner_id, title=title or DEFAULT_CONVERSATION_TITLE)
        self.session.add(conversation)
        commit(self.session, conversation)
        return conversation

    def list_conversations(self, owner_id: str) -> list[Conversation]:
        statement = select(Conversation).where(
            Conversation.user_id == owner_id
        ).order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        return list(self.session.exec(statement).all())

    def get_owned(self, conversation_id: int, owner_id: str) -> Conversation:
        """
        Fetch a conversation the caller owns.

        Raises:
            NotFound: If no conversation has this id
            AccessDenied: If it belongs to another user
        """
        conversation = self.session.get(Conversation, conversation_id)
        if conversation is None:
            raise NotFound("Conversation not found")
        if conversation.user_id != owner_id:
            logger.warning(f"User {owner_id} denied access to conversation {conversation_id}")
            raise AccessDenied()
        return conversation

    def rename_conversation(self, conversation_id: int, owner_id: str, title: str) -> Conversation:
        conversation = self.get_owned(conversation_id, owner_id)
        conversation.title = title
        conversation.updated_at = utcnow()
        self.session.add(conversation)
        commit(self.session, conversation)
        return conversation

    def delete_conversation(self, conversation_id: int, owner_id: str) -> None:
        # Cascade deletes messages
        conversation = self.get_owned(conversation_id, owner_id)
        self.session.delete(conversation)
        commit(self.session)

    def append_message(self, conversation: Conversation, content: str, is_user: bool) -> Message:
        """Store a message and bump the conversation's updated_at."""
        message = Message(conversation_id=conversation.id, content=content, is_user=is_user)
        conversation.updated_at = utcnow()
        if is_user and conversation.title == DEFAULT_CONVERSATION_TITLE:
            conversation.title = title_from_message(content)

        self.session.add(message)
        self.session.add(conversation)
        commit(self.session, message, conversation)
        return message

    def list_messages(self, conversation: Conversation) -> list[Message]:
        """Messages in chronological order."""
        statement = select(Message).where(
            Message.conversation_id == conversation.id
        ).order_by(Message.created_at, Message.id)
        return list(self.session.exec(statement).all())
