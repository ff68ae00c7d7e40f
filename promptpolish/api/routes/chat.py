"""Chat endpoint routes for the prompt-engineering assistant.

Provides:
- POST /api/chat - Start an in-memory chat session
- POST /api/chat/{chat_id}/message - Run a chat turn
- GET /api/chat/{chat_id} - Get the session's messages
- POST /api/assistant - One-off answer from client-held history

Chat sessions are not durable; see promptpolish.services.session_store.
"""
from fastapi import APIRouter, Depends, status

from promptpolish.core.deps import get_chat_service, get_current_user, get_session_store
from promptpolish.core.security import Identity
from promptpolish.schemas.chat import (
    AssistantRequest,
    AssistantResponse,
    ChatCreated,
    ChatDetail,
    MessageCreate,
    MessageRead,
    TurnResponse,
)
from promptpolish.services.chat_service import ChatService
from promptpolish.services.session_store import InMemorySessionStore

router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat", response_model=ChatCreated, status_code=status.HTTP_201_CREATED)
def start_chat(
    current_user: Identity = Depends(get_current_user),
    store: InMemorySessionStore = Depends(get_session_store),
) -> ChatCreated:
    session = store.create_conversation(current_user.user_id)
    return ChatCreated(chatId=session.id)


@router.post("/chat/{chat_id}/message", response_model=TurnResponse)
def send_chat_message(
    chat_id: str,
    request: MessageCreate,
    current_user: Identity = Depends(get_current_user),
    store: InMemorySessionStore = Depends(get_session_store),
    chat_service: ChatService = Depends(get_chat_service),
) -> TurnResponse:
    """
    Send message to the assistant.

    Returns the stored user message and the reply. A model failure still
    answers 200, with the apology as the reply.

    Raises:
        ValidationError: 400 if content is empty
        AccessDenied: 403 if the chat belongs to another user
        NotFound: 404 if the chat does not exist or expired
    """
    turn = chat_service.post_message(store, chat_id, current_user, request.content)
    return TurnResponse(
        user=MessageRead.from_model(turn.user_message),
        ai=MessageRead.from_model(turn.reply_message),
    )


@router.get("/chat/{chat_id}", response_model=ChatDetail)
def get_chat(
    chat_id: str,
    current_user: Identity = Depends(get_current_user),
    store: InMemorySessionStore = Depends(get_session_store),
) -> ChatDetail:
    session = store.get_owned(chat_id, current_user.user_id)
    return ChatDetail(messages=[MessageRead.from_model(m) for m in store.list_messages(session)])


@router.post("/assistant", response_model=AssistantResponse)
def ask_assistant(
    request: AssistantRequest,
    current_user: Identity = Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service),
) -> AssistantResponse:
    response = chat_service.assist(request.message, request.conversationHistory)
    return AssistantResponse(response=response)
