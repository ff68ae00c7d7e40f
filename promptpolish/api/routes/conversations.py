"""Persisted conversation routes.

Provides:
- GET /api/conversations - List the caller's conversations
- POST /api/conversations - Create a conversation
- GET /api/conversations/{id} - Get conversation with messages
- PATCH /api/conversations/{id} - Rename a conversation
- DELETE /api/conversations/{id} - Delete conversation and its messages
- POST /api/conversations/{id}/messages - Run a chat turn
"""
from fastapi import APIRouter, Depends, Response, status
from sqlmodel import Session

from promptpolish.core.deps import get_chat_service, get_current_user, get_db
from promptpolish.core.security import Identity
from promptpolish.schemas.chat import (
    ConversationCreate,
    ConversationDetail,
    ConversationRead,
    ConversationUpdate,
    MessageCreate,
    MessageRead,
    TurnResponse,
)
from promptpolish.services.chat_service import ChatService
from promptpolish.services.conversation_service import ConversationStore

router = APIRouter(prefix="/api/conversations", tags=["conversations"])


@router.get("", response_model=list[ConversationRead])
def list_conversations(
    current_user: Identity = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> list[ConversationRead]:
    conversations = ConversationStore(session).list_conversations(current_user.user_id)
    return [ConversationRead.from_model(c) for c in conversations]


@router.post("", response_model=ConversationRead, status_code=status.HTTP_201_CREATED)
def create_conversation(
    data: ConversationCreate,
    current_user: Identity = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ConversationRead:
    conversation = ConversationStore(session).create_conversation(current_user.user_id, data.title)
    return ConversationRead.from_model(conversation)


@router.get("/{conversation_id}", response_model=ConversationDetail)
def get_conversation(
    conversation_id: int,
    current_user: Identity = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ConversationDetail:
    """
    Get conversation with all messages.

    Raises:
        AccessDenied: 403 if owned by another user
        NotFound: 404 if conversation not found
    """
    store = ConversationStore(session)
    conversation = store.get_owned(conversation_id, current_user.user_id)
    read = ConversationRead.from_model(conversation)
    return ConversationDetail(
        **read.model_dump(),
        messages=[MessageRead.from_model(m) for m in store.list_messages(conversation)],
    )


@router.patch("/{conversation_id}", response_model=ConversationRead)
def rename_conversation(
    conversation_id: int,
    data: ConversationUpdate,
    current_user: Identity = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ConversationRead:
    conversation = ConversationStore(session).rename_conversation(
        conversation_id, current_user.user_id, data.title
    )
    return ConversationRead.from_model(conversation)


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_conversation(
    conversation_id: int,
    current_user: Identity = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> Response:
    ConversationStore(session).delete_conversation(conversation_id, current_user.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{conversation_id}/messages", response_model=TurnResponse)
def send_conversation_message(
    conversation_id: int,
    request: MessageCreate,
    current_user: Identity = Depends(get_current_user),
    session: Session = Depends(get_db),
    chat_service: ChatService = Depends(get_chat_service),
) -> TurnResponse:
    turn = chat_service.post_message(ConversationStore(session), conversation_id, current_user, request.content)
    return TurnResponse(
        user=MessageRead.from_model(turn.user_message),
        ai=MessageRead.from_model(turn.reply_message),
    )
