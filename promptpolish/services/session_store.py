"""In-memory chat sessions.

Non-durable: sessions live in this process only and are lost on restart.
The store is bounded. Sessions idle for longer than `ttl_seconds` expire,
and the least recently used session is evicted once `max_sessions` is
exceeded. One instance is created per application and injected into the
routes that need it.
"""
import logging
import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from promptpolish.core.errors import AccessDenied, NotFound
from promptpolish.core.timeutils import utcnow
from promptpolish.models.conversation import DEFAULT_CONVERSATION_TITLE
from promptpolish.services.conversation_service import title_from_message

logger = logging.getLogger(__name__)


@dataclass
class ChatMessage:
    id: str
    conversation_id: str
    content: str
    is_user: bool
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class ChatSession:
    id: str
    user_id: str
    title: str = DEFAULT_CONVERSATION_TITLE
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    messages: list[ChatMessage] = field(default_factory=list)


class InMemorySessionStore:
    """Bounded, expiring chat sessions keyed by chat id."""

    def __init__(
        self,
        ttl_seconds: float = 3600,
        max_sessions: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        # {chat_id: (session, last_access)} ordered oldest access first
        self._sessions: "OrderedDict[str, tuple[ChatSession, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired()
            return len(self._sessions)

    def create_conversation(self, owner_id: str, title: Optional[str] = None) -> ChatSession:
        session = ChatSession(id=str(uuid.uuid4()), user_id=owner_id, title=title or DEFAULT_CONVERSATION_TITLE)
        with self._lock:
            self._purge_expired()
            self._sessions[session.id] = (session, self._clock())
            while len(self._sessions) > self.max_sessions:
                evicted_id, _ = self._sessions.popitem(last=False)
                logger.info(f"Evicted chat session {evicted_id} (store full)")
        return session

    def get_owned(self, chat_id: str, owner_id: str) -> ChatSession:
        """
        Fetch a live session the caller owns and refresh its expiry.

        Raises:
            NotFound: If the session never existed or has expired
            AccessDenied: If it belongs to another user
        """
        with self._lock:
            self._purge_expired()
            entry = self._sessions.get(chat_id)
            if entry is None:
                raise NotFound("Chat not found")
            session = entry[0]
            if session.user_id != owner_id:
                logger.warning(f"User {owner_id} denied access to chat {chat_id}")
                raise AccessDenied()
            self._touch(chat_id, session)
            return session

    def append_message(self, session: ChatSession, content: str, is_user: bool) -> ChatMessage:
        message = ChatMessage(
            id=str(uuid.uuid4()),
            conversation_id=session.id,
            content=content,
            is_user=is_user,
        )
        with self._lock:
            session.messages.append(message)
            session.updated_at = message.created_at
            if is_user and session.title == DEFAULT_CONVERSATION_TITLE:
                session.title = title_from_message(content)
            if session.id in self._sessions:
                self._touch(session.id, session)
        return message

    def list_messages(self, session: ChatSession) -> list[ChatMessage]:
        with self._lock:
            return list(session.messages)

    def _touch(self, chat_id: str, session: ChatSession) -> None:
        self._sessions[chat_id] = (session, self._clock())
        self._sessions.move_to_end(chat_id)

    def _purge_expired(self) -> None:
        now = self._clock()
        while self._sessions:
            chat_id, (_, last_access) = next(iter(self._sessions.items()))
            if now - last_access < self.ttl_seconds:
                break
            del self._sessions[chat_id]
            logger.info(f"Expired chat session {chat_id}")
