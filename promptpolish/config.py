"""Application settings loaded from environment variables or a `.env` file."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Strongly typed access to environment configuration.

    Every value has a development default so the API boots with an empty
    environment: SQLite storage, local JWT auth and the offline model client.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./promptpolish.db"

    # Generative model
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TIMEOUT: float = 30.0
    OPENAI_MAX_RETRIES: int = 3
    OPENAI_TEMPERATURE: float = 0.7
    OPENAI_MAX_TOKENS: int = 1024

    # Identity: "local" (tokens issued by /api/auth) or "firebase"
    AUTH_PROVIDER: str = "local"
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None
    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 60 * 24

    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # Context windows (messages of history sent to the model)
    CHAT_CONTEXT_WINDOW: int = 10
    ASSISTANT_CONTEXT_WINDOW: int = 5

    # In-memory chat sessions
    CHAT_SESSION_TTL_SECONDS: int = 60 * 60
    CHAT_SESSION_MAX: int = 1000

    # Login throttling per client address
    LOGIN_RATE_LIMIT: int = 5
    LOGIN_RATE_WINDOW_SECONDS: int = 15 * 60

    LOG_LEVEL: str = "INFO"


settings = Settings()
