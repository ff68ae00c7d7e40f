"""Conversation and Message SQLModel definitions for the assistant chat.

Models:
- Conversation: Chat conversation entity with user ownership
- Message: Individual message in a conversation
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, Relationship, SQLModel

from promptpolish.core.timeutils import utcnow

DEFAULT_CONVERSATION_TITLE = "New Chat"


class Conversation(SQLModel, table=True):
    """
    Conversation entity for the assistant chat.

    Ownership: Each conversation belongs to exactly one user via user_id.
    All queries MUST filter by user_id. Deleting a conversation deletes
    its messages.
    """
    __tablename__ = "conversations"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True, nullable=False)
    title: str = Field(default=DEFAULT_CONVERSATION_TITLE, max_length=255)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, index=True)

    messages: List["Message"] = Relationship(
        back_populates="conversation",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class Message(SQLModel, table=True):
    """
    Message entity for conversations.

    is_user: True for user-authored messages, False for assistant replies.
    Messages are ordered by creation time within their conversation.
    """
    __tablename__ = "messages"

    id: Optional[int] = Field(default=None, primary_key=True)
    conversation_id: int = Field(
        foreign_key="conversations.id", ondelete="CASCADE", index=True, nullable=False
    )
    content: str = Field(sa_column=Column(Text, nullable=False))
    is_user: bool = Field(nullable=False)
    created_at: datetime = Field(default_factory=utcnow, index=True)

    conversation: Optional[Conversation] = Relationship(back_populates="messages")
