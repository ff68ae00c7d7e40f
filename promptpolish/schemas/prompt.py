"""Request/response models for enhancement and saved prompts."""
import json
from datetime import datetime

from pydantic import BaseModel, Field

from promptpolish.models.prompt import EnhancementFocus, Prompt, PromptType
from promptpolish.services.enhancement_service import Improvement


class EnhanceRequest(BaseModel):
    prompt: str = Field(min_length=1)
    promptType: PromptType
    enhancementFocus: EnhancementFocus


class PromptCreate(BaseModel):
    originalPrompt: str = Field(min_length=1)
    enhancedPrompt: str
    promptType: PromptType
    enhancementFocus: EnhancementFocus
    improvements: list[Improvement] = []
    isFavorite: bool = False


class FavoriteUpdate(BaseModel):
    isFavorite: bool


class PromptRead(BaseModel):
    id: int
    userId: str
    originalPrompt: str
    enhancedPrompt: str
    promptType: PromptType
    enhancementFocus: EnhancementFocus
    improvements: list[Improvement]
    isFavorite: bool
    createdAt: datetime

    @classmethod
    def from_model(cls, prompt: Prompt) -> "PromptRead":
        return cls(
            id=prompt.id,
            userId=prompt.user_id,
            originalPrompt=prompt.original_prompt,
            enhancedPrompt=prompt.enhanced_prompt,
            promptType=prompt.prompt_type,
            enhancementFocus=prompt.enhancement_focus,
            improvements=json.loads(prompt.improvements),
            isFavorite=prompt.is_favorite,
            createdAt=prompt.created_at,
        )
