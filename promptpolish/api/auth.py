"""Local account routes.

Provides:
- POST /api/auth/register - Create an account and issue a token
- POST /api/auth/login - Exchange credentials for a token (rate limited)
"""
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import or_
from sqlmodel import Session, select

from promptpolish.core.deps import get_db, get_login_limiter
from promptpolish.core.errors import AuthError, RateLimited, ValidationError
from promptpolish.core.security import create_access_token, hash_password, validate_password, verify_password
from promptpolish.database import commit
from promptpolish.models.user import User
from promptpolish.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from promptpolish.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        token=create_access_token(user.id, user.email, user.username),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, session: Session = Depends(get_db)) -> AuthResponse:
    """
    Register a new user account.

    Raises:
        ValidationError: 400 if the password breaks the policy or the
            username/email is taken
    """
    validate_password(data.password)

    statement = select(User).where(or_(User.email == data.email, User.username == data.username))
    if session.exec(statement).first():
        raise ValidationError.for_field("email", "User already exists")

    user = User(username=data.username, email=data.email, password=hash_password(data.password))
    session.add(user)
    commit(session, user)

    logger.info(f"User registered: id={user.id}")
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
def login(
    data: LoginRequest,
    request: Request,
    session: Session = Depends(get_db),
    limiter: RateLimiter = Depends(get_login_limiter),
) -> AuthResponse:
    """
    Authenticate a user.

    Raises:
        RateLimited: 429 after too many attempts from one client
        AuthError: 401 on unknown email or wrong password
    """
    client = request.client.host if request.client else "unknown"
    if not limiter.check_and_increment(client):
        logger.warning(f"Login rate limit exceeded for {client}")
        minutes = int(limiter.window_seconds // 60)
        raise RateLimited(f"Too many login attempts, please try again after {minutes} minutes")

    user = session.exec(select(User).where(User.email == data.email)).first()
    if not user or not verify_password(data.password, user.password):
        raise AuthError("Invalid credentials")

    return _auth_response(user)
