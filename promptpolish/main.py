"""FastAPI application entry point for the PromptPolish API."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from promptpolish.api.auth import router as auth_router
from promptpolish.api.routes.chat import router as chat_router
from promptpolish.api.routes.conversations import router as conversations_router
from promptpolish.api.routes.enhance import router as enhance_router
from promptpolish.api.routes.prompts import router as prompts_router
from promptpolish.config import settings
from promptpolish.core.errors import AppError, ValidationError
from promptpolish.core.security import build_identity_verifier
from promptpolish.database import init_db
from promptpolish.services.llm_service import build_llm_client
from promptpolish.services.rate_limiter import RateLimiter
from promptpolish.services.session_store import InMemorySessionStore

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(
    title="PromptPolish API",
    description="Prompt enhancement, saved prompts and prompt-engineering chat",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Per-process collaborators, injected through promptpolish.core.deps
app.state.identity_verifier = build_identity_verifier(settings)
app.state.llm_client = build_llm_client(settings)
app.state.chat_sessions = InMemorySessionStore(
    ttl_seconds=settings.CHAT_SESSION_TTL_SECONDS,
    max_sessions=settings.CHAT_SESSION_MAX,
)
app.state.login_limiter = RateLimiter(
    max_requests=settings.LOGIN_RATE_LIMIT,
    window_seconds=settings.LOGIN_RATE_WINDOW_SECONDS,
)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(enhance_router)
app.include_router(prompts_router)
app.include_router(chat_router)
app.include_router(conversations_router)


def _error_body(detail: str, errors=None) -> dict:
    body = {"detail": detail}
    if errors:
        body["errors"] = errors
    return body


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    errors = exc.errors if isinstance(exc, ValidationError) else None
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.detail, errors))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies answer 400 with one message per field."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append({"field": field or "body", "message": error.get("msg", "Invalid value")})
    return JSONResponse(status_code=400, content=_error_body("Invalid request data", errors))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions with generic error response."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )
