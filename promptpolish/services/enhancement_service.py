"""Prompt enhancement: instruction construction and model reply parsing.

Flow:
1. Validate the prompt text and both categorical parameters
2. Build the enhancement instruction
3. Call the model (the only step that may raise UpstreamError)
4. Parse the reply; anything that is not the expected JSON shape degrades
   to the raw text plus a single PROCESSED improvement
"""
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ConfigDict

from promptpolish.core.errors import ValidationError
from promptpolish.models.prompt import EnhancementFocus, PromptType
from promptpolish.services.llm_service import LLMClient

logger = logging.getLogger(__name__)

PROCESSED_CATEGORY = "PROCESSED"
PROCESSED_DETAIL = "Prompt was enhanced but structured improvements couldn't be parsed"

_CODE_FENCE = re.compile(r"```json|```")


class Improvement(BaseModel):
    # Extra keys from the model reply are passed through untouched
    model_config = ConfigDict(extra="allow")

    category: str
    detail: str


class EnhancementResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    enhancedPrompt: str
    improvements: list[Improvement]


@dataclass(frozen=True)
class ParsedReply:
    """Outcome of parsing a model reply. `structured` is False for the fallback."""

    result: EnhancementResult
    structured: bool


def _coerce_enum(enum_cls, value: Union[str, Any], field: str, errors: list) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        errors.append({"field": field, "message": f"Invalid {field} '{value}'. Expected one of: {allowed}"})
        return None


def validate_enhancement_input(
    original_text: str, prompt_type: Union[str, PromptType], enhancement_focus: Union[str, EnhancementFocus]
) -> tuple[str, PromptType, EnhancementFocus]:
    """
    Validate enhancement input and normalize the enums.

    Raises:
        ValidationError: One message per invalid field.
    """
    errors: list[dict[str, str]] = []
    if not isinstance(original_text, str) or not original_text.strip():
        errors.append({"field": "prompt", "message": "Prompt is required"})
    ptype = _coerce_enum(PromptType, prompt_type, "promptType", errors)
    focus = _coerce_enum(EnhancementFocus, enhancement_focus, "enhancementFocus", errors)

    if errors:
        raise ValidationError(errors)
    return original_text, ptype, focus


def build_enhancement_prompt(original_text: str, prompt_type: PromptType, enhancement_focus: EnhancementFocus) -> str:
    """Instruction asking the model to rewrite a prompt and explain the changes as JSON."""
    return f"""You are an expert prompt enhancer. Your task is to improve the following prompt to make it more effective.

Original prompt: "{original_text}"

Selected prompt type: {prompt_type.value}
Enhancement focus: {enhancement_focus.value}

Please enhance this prompt to:
1. Improve clarity and structure
2. Add specific details and context
3. Match the tone and style of the {enhancement_focus.value} focus
4. Make it more effective for its purpose

Return only a JSON object with the following structure:
{{
  "enhancedPrompt": "the improved version of the prompt",
  "improvements": [
    {{ "category": "STRUCTURE", "detail": "what was improved about structure" }},
    {{ "category": "CLARITY", "detail": "what was improved about clarity" }},
    {{ "category": "SPECIFICITY", "detail": "what was improved about specificity" }}
  ]
}}"""


def build_fallback_result(raw: str) -> EnhancementResult:
    """Degraded result: the reply text without code fences, one PROCESSED note."""
    text = _CODE_FENCE.sub("", raw or "").strip()
    return EnhancementResult(
        enhancedPrompt=text,
        improvements=[Improvement(category=PROCESSED_CATEGORY, detail=PROCESSED_DETAIL)],
    )


def _structured_result(data: Any) -> Union[EnhancementResult, None]:
    if not isinstance(data, dict):
        return None
    enhanced = data.get("enhancedPrompt")
    improvements = data.get("improvements")
    if not isinstance(enhanced, str) or not isinstance(improvements, list):
        return None
    for item in improvements:
        if not isinstance(item, dict):
            return None
        if not isinstance(item.get("category"), str) or not isinstance(item.get("detail"), str):
            return None
    return EnhancementResult.model_validate(data)


def parse_model_reply(raw: str) -> ParsedReply:
    """Parse a model reply. Never raises."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        data = None

    result = _structured_result(data)
    if result is not None:
        return ParsedReply(result=result, structured=True)
    return ParsedReply(result=build_fallback_result(raw), structured=False)


def enhance(
    original_text: str,
    prompt_type: Union[str, PromptType],
    enhancement_focus: Union[str, EnhancementFocus],
    llm: LLMClient,
) -> EnhancementResult:
    """
    Enhance a prompt with the generative model.

    Returns:
        The model's structured result, or the degraded fallback when the
        reply could not be parsed.

    Raises:
        ValidationError: Invalid input; raised before the model is called.
        UpstreamError: The model call itself failed.
    """
    text, ptype, focus = validate_enhancement_input(original_text, prompt_type, enhancement_focus)

    instruction = build_enhancement_prompt(text, ptype, focus)
    raw = llm.complete(instruction, json_mode=True)

    parsed = parse_model_reply(raw)
    if not parsed.structured:
        logger.warning("Enhancement reply was not structured JSON; returning degraded result")
    logger.info(
        f"Prompt enhanced: type={ptype.value}, focus={focus.value}, "
        f"improvements={len(parsed.result.improvements)}"
    )
    return parsed.result
