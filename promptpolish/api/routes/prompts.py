"""Saved prompt routes.

Provides:
- GET /api/prompts - List the caller's prompts, newest first
- POST /api/prompts - Save an enhancement result
- GET /api/prompts/favorites - List the caller's favorite prompts
- PATCH /api/prompts/{id}/favorite - Set or clear the favorite flag
"""
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from promptpolish.core.deps import get_current_user, get_db
from promptpolish.core.security import Identity
from promptpolish.schemas.prompt import FavoriteUpdate, PromptCreate, PromptRead
from promptpolish.services import prompt_service

router = APIRouter(prefix="/api/prompts", tags=["prompts"])


@router.get("", response_model=list[PromptRead])
def list_prompts(
    current_user: Identity = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> list[PromptRead]:
    prompts = prompt_service.list_prompts(session, current_user.user_id)
    return [PromptRead.from_model(p) for p in prompts]


@router.post("", response_model=PromptRead, status_code=status.HTTP_201_CREATED)
def create_prompt(
    data: PromptCreate,
    current_user: Identity = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> PromptRead:
    prompt = prompt_service.create_prompt(session, current_user.user_id, data)
    return PromptRead.from_model(prompt)


@router.get("/favorites", response_model=list[PromptRead])
def list_favorites(
    current_user: Identity = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> list[PromptRead]:
    prompts = prompt_service.list_favorite_prompts(session, current_user.user_id)
    return [PromptRead.from_model(p) for p in prompts]


@router.patch("/{prompt_id}/favorite", response_model=PromptRead)
def update_favorite(
    prompt_id: int,
    data: FavoriteUpdate,
    current_user: Identity = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> PromptRead:
    """
    Set the favorite flag.

    Raises:
        NotFound: 404 if the prompt does not exist or is not the caller's
    """
    prompt = prompt_service.set_favorite(session, current_user.user_id, prompt_id, data.isFavorite)
    return PromptRead.from_model(prompt)
