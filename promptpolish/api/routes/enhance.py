"""Prompt enhancement route.

Provides:
- POST /api/enhance - Rewrite a prompt with the generative model
"""
from fastapi import APIRouter, Depends

from promptpolish.core.deps import get_current_user, get_llm_client
from promptpolish.core.security import Identity
from promptpolish.schemas.prompt import EnhanceRequest
from promptpolish.services.enhancement_service import EnhancementResult, enhance
from promptpolish.services.llm_service import LLMClient

router = APIRouter(prefix="/api", tags=["enhance"])


@router.post("/enhance", response_model=EnhancementResult)
def enhance_prompt(
    request: EnhanceRequest,
    current_user: Identity = Depends(get_current_user),
    llm: LLMClient = Depends(get_llm_client),
) -> EnhancementResult:
    """
    Enhance a prompt.

    Always answers with {enhancedPrompt, improvements}; an unparseable model
    reply yields the degraded single-PROCESSED result rather than an error.

    Raises:
        ValidationError: 400 on empty prompt or unknown type/focus
        UpstreamError: 500 if the model call failed
    """
    return enhance(request.prompt, request.promptType, request.enhancementFocus, llm)
