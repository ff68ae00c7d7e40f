"""FastAPI dependencies shared by the routers."""
from typing import Iterator, Optional

from fastapi import Depends, Header, Request
from sqlmodel import Session

from promptpolish.core.errors import AuthError
from promptpolish.core.security import Identity, IdentityVerifier
from promptpolish.database import get_session
from promptpolish.services.chat_service import ChatService
from promptpolish.services.llm_service import LLMClient
from promptpolish.services.rate_limiter import RateLimiter
from promptpolish.services.session_store import InMemorySessionStore


def get_db() -> Iterator[Session]:
    yield from get_session()


def get_identity_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.identity_verifier


def get_llm_client(request: Request) -> LLMClient:
    return request.app.state.llm_client


def get_session_store(request: Request) -> InMemorySessionStore:
    return request.app.state.chat_sessions


def get_login_limiter(request: Request) -> RateLimiter:
    return request.app.state.login_limiter


def get_chat_service(llm: LLMClient = Depends(get_llm_client)) -> ChatService:
    return ChatService(llm)


def get_current_user(
    authorization: Optional[str] = Header(None),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> Identity:
    """
    Reads Authorization header in the format: "Bearer <token>"
    Returns the verified identity of the caller.
    """
    if not authorization:
        raise AuthError("No token provided")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Invalid token format")
    return verifier.verify(token.strip())
