"""Credentials and identity verification.

Local accounts use bcrypt password hashes and HS256 JWTs issued by this
service. Deployments fronted by Firebase verify provider ID tokens instead.
Both are exposed through `IdentityVerifier` so request handling never
branches on the provider.
"""
import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import bcrypt
import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials as firebase_credentials
from firebase_admin.exceptions import FirebaseError
from jose import JWTError, jwt

from promptpolish.config import Settings, settings
from promptpolish.core.errors import AuthError, ValidationError
from promptpolish.core.timeutils import utcnow

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 8
# bcrypt only accepts secrets up to 72 bytes
PASSWORD_MAX_BYTES = 72
_SPECIAL_CHARS = re.compile(r'[!@#$%^&*(),.?":{}|<>]')


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def validate_password(password: str) -> None:
    """
    Enforce the password policy.

    Raises:
        ValidationError: attributed to the "password" field, listing every
            rule the password breaks.
    """
    problems = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"be at least {PASSWORD_MIN_LENGTH} characters long")
    if len(password.encode()) > PASSWORD_MAX_BYTES:
        problems.append(f"be at most {PASSWORD_MAX_BYTES} bytes long")
    if not re.search(r"[A-Z]", password):
        problems.append("contain an uppercase letter")
    if not re.search(r"[a-z]", password):
        problems.append("contain a lowercase letter")
    if not re.search(r"\d", password):
        problems.append("contain a number")
    if not _SPECIAL_CHARS.search(password):
        problems.append("contain a special character")

    if problems:
        raise ValidationError.for_field(
            "password", "Password must " + ", ".join(problems)
        )


def create_access_token(
    user_id: int, email: str, username: str, config: Settings = settings
) -> str:
    payload = {
        "sub": str(user_id),
        "email": email,
        "username": username,
        "exp": utcnow() + timedelta(minutes=config.JWT_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller attached to a request."""

    user_id: str
    email: Optional[str] = None
    username: Optional[str] = None


class IdentityVerifier:
    """Turns a bearer token into an Identity or raises AuthError."""

    def verify(self, token: str) -> Identity:
        raise NotImplementedError


class JWTIdentityVerifier(IdentityVerifier):
    """Verifies tokens issued by `create_access_token`."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def verify(self, token: str) -> Identity:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.info(f"Rejected local token: {e}")
            raise AuthError("Invalid or expired token") from e

        subject = payload.get("sub")
        if not subject:
            raise AuthError("Invalid or expired token")
        return Identity(
            user_id=str(subject),
            email=payload.get("email"),
            username=payload.get("username"),
        )


class FirebaseIdentityVerifier(IdentityVerifier):
    """Verifies Firebase ID tokens with the Admin SDK."""

    def __init__(self, credentials_path: Optional[str] = None):
        if not firebase_admin._apps:
            if credentials_path:
                cred = firebase_credentials.Certificate(credentials_path)
            else:
                cred = firebase_credentials.ApplicationDefault()
            firebase_admin.initialize_app(cred)

    def verify(self, token: str) -> Identity:
        try:
            decoded = firebase_auth.verify_id_token(token)
        except (ValueError, FirebaseError) as e:
            # Base class of every Admin SDK auth error
            logger.info(f"Rejected Firebase token: {e}")
            raise AuthError("Invalid or expired token") from e

        return Identity(
            user_id=decoded["uid"],
            email=decoded.get("email"),
            username=decoded.get("name") or decoded.get("email"),
        )


def build_identity_verifier(config: Settings = settings) -> IdentityVerifier:
    """Pick the verifier for the configured AUTH_PROVIDER."""
    provider = config.AUTH_PROVIDER.lower()
    if provider == "firebase":
        return FirebaseIdentityVerifier(config.FIREBASE_CREDENTIALS_PATH)
    if provider == "local":
        return JWTIdentityVerifier(config.JWT_SECRET, config.JWT_ALGORITHM)
    raise ValueError(f"Unknown AUTH_PROVIDER '{config.AUTH_PROVIDER}'")
