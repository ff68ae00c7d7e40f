"""Request/response models for chat sessions, conversations and the assistant."""
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, Field


class MessageCreate(BaseModel):
    content: str


class MessageRead(BaseModel):
    """A stored message; ids are ints for conversations, strings for chat sessions."""
    id: Union[int, str]
    conversationId: Union[int, str]
    content: str
    isUser: bool
    createdAt: datetime

    @classmethod
    def from_model(cls, message: Any) -> "MessageRead":
        return cls(
            id=message.id,
            conversationId=message.conversation_id,
            content=message.content,
            isUser=message.is_user,
            createdAt=message.created_at,
        )


class TurnResponse(BaseModel):
    user: MessageRead
    ai: MessageRead


class ChatCreated(BaseModel):
    chatId: str


class ChatDetail(BaseModel):
    messages: list[MessageRead]


class ConversationCreate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=255)


class ConversationUpdate(BaseModel):
    title: str = Field(min_length=1, max_length=255)


class ConversationRead(BaseModel):
    id: int
    title: str
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_model(cls, conversation: Any) -> "ConversationRead":
        return cls(
            id=conversation.id,
            title=conversation.title,
            createdAt=conversation.created_at,
            updatedAt=conversation.updated_at,
        )


class ConversationDetail(ConversationRead):
    messages: list[MessageRead]


class HistoryEntry(BaseModel):
    """One client-held message for the standalone assistant."""
    role: str
    content: str

    @property
    def is_user(self) -> bool:
        return self.role == "user"


class AssistantRequest(BaseModel):
    message: str
    conversationHistory: list[HistoryEntry] = []


class AssistantResponse(BaseModel):
    response: str
