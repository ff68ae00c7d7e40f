"""Saved prompt persistence. Every query is scoped to the owner."""
import json
import logging

from sqlmodel import Session, select

from promptpolish.core.errors import NotFound
from promptpolish.models.prompt import Prompt
from promptpolish.schemas.prompt import PromptCreate
from promptpolish.database import commit

logger = logging.getLogger(__name__)


def create_prompt(session: Session, owner_id: str, data: PromptCreate) -> Prompt:
    prompt = Prompt(
        user_id=owner_id,
        original_prompt=data.originalPrompt,
        enhanced_prompt=data.enhancedPrompt,
        prompt_type=data.promptType.value,
        enhancement_focus=data.enhancementFocus.value,
        improvements=json.dumps([item.model_dump() for item in data.improvements]),
        is_favorite=data.isFavorite,
    )
    session.add(prompt)
    commit(session, prompt)
    logger.info(f"Prompt saved: user={owner_id}, prompt_id={prompt.id}")
    return prompt


def list_prompts(session: Session, owner_id: str) -> list[Prompt]:
    """Owner's prompts, most recent first."""
    statement = select(Prompt).where(
        Prompt.user_id == owner_id
    ).order_by(Prompt.created_at.desc(), Prompt.id.desc())
    return list(session.exec(statement).all())


def list_favorite_prompts(session: Session, owner_id: str) -> list[Prompt]:
    statement = select(Prompt).where(
        Prompt.user_id == owner_id,
        Prompt.is_favorite == True,  # noqa: E712
    ).order_by(Prompt.created_at.desc(), Prompt.id.desc())
    return list(session.exec(statement).all())


def set_favorite(session: Session, owner_id: str, prompt_id: int, is_favorite: bool) -> Prompt:
    """
    Set the favorite flag on one of the owner's prompts.

    Raises:
        NotFound: If the prompt does not exist or belongs to another user
    """
    statement = select(Prompt).where(
        Prompt.id == prompt_id,
        Prompt.user_id == owner_id,
    )
    prompt = session.exec(statement).first()
    if not prompt:
        raise NotFound("Prompt not found")

    prompt.is_favorite = is_favorite
    session.add(prompt)
    commit(session, prompt)
    return prompt
