"""Shared fixtures: in-memory database, scripted model client, API client."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from promptpolish.core import deps
from promptpolish.core.security import create_access_token
from promptpolish.database import build_engine, init_db
from promptpolish.main import app
from promptpolish.services.llm_service import LLMClient
from promptpolish.services.rate_limiter import RateLimiter
from promptpolish.services.session_store import InMemorySessionStore


class FakeLLMClient(LLMClient):
    """Replays queued replies; an Exception in the queue is raised instead."""

    def __init__(self, default: str = "Here is a better prompt."):
        self.default = default
        self.replies = []
        self.prompts = []

    def queue(self, *replies):
        self.replies.extend(replies)

    def complete(self, prompt: str, json_mode: bool = False) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def llm():
    return FakeLLMClient()


@pytest.fixture
def session_store():
    return InMemorySessionStore(ttl_seconds=3600, max_sessions=100)


@pytest.fixture
def login_limiter():
    return RateLimiter(max_requests=5, window_seconds=15 * 60)


@pytest.fixture
def client(engine, llm, session_store, login_limiter):
    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_llm_client] = lambda: llm
    app.dependency_overrides[deps.get_session_store] = lambda: session_store
    app.dependency_overrides[deps.get_login_limiter] = lambda: login_limiter
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user_id: int, email: str = None, username: str = None) -> dict:
    token = create_access_token(
        user_id, email or f"user{user_id}@example.com", username or f"user{user_id}"
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice():
    return auth_headers(1)


@pytest.fixture
def bob():
    return auth_headers(2)


@pytest.fixture
def make_headers():
    return auth_headers
