import json

import pytest

from promptpolish.core.errors import UpstreamError, ValidationError
from promptpolish.models.prompt import EnhancementFocus, PromptType
from promptpolish.services.enhancement_service import (
    PROCESSED_CATEGORY,
    PROCESSED_DETAIL,
    build_enhancement_prompt,
    build_fallback_result,
    enhance,
    parse_model_reply,
)

STRUCTURED_REPLY = json.dumps({
    "enhancedPrompt": "Write a 150-word blog introduction that hooks readers with a question.",
    "improvements": [{"category": "CLARITY", "detail": "Stated the length and the hook."}],
})


def test_structured_reply_is_returned_verbatim(llm):
    llm.queue(STRUCTURED_REPLY)

    result = enhance("write a blog intro", "Creative", "LLM-Optimized", llm)

    assert result.model_dump() == json.loads(STRUCTURED_REPLY)


def test_code_fenced_bad_json_degrades_to_processed(llm):
    llm.queue("```json\n{bad json}```")

    result = enhance("write a blog intro", "Creative", "LLM-Optimized", llm)

    assert result.enhancedPrompt == "{bad json}"
    assert [i.model_dump() for i in result.improvements] == [
        {"category": "PROCESSED", "detail": PROCESSED_DETAIL}
    ]


@pytest.mark.parametrize("raw", [
    "Just a rewritten prompt in plain prose.",
    "```\nfenced prose\n```",
    '{"enhancedPrompt": 42, "improvements": []}',
    '{"enhancedPrompt": "ok", "improvements": [{"category": "CLARITY"}]}',
    '{"enhancedPrompt": "ok"}',
    '["enhancedPrompt"]',
    "",
])
def test_unparseable_replies_never_raise(raw):
    parsed = parse_model_reply(raw)

    assert parsed.structured is False
    assert len(parsed.result.improvements) == 1
    assert parsed.result.improvements[0].category == PROCESSED_CATEGORY


def test_fenced_valid_json_is_treated_as_text():
    parsed = parse_model_reply("```json\n" + STRUCTURED_REPLY + "\n```")

    assert parsed.structured is False
    assert parsed.result.enhancedPrompt == STRUCTURED_REPLY


def test_fallback_strips_fences_and_trims():
    result = build_fallback_result("  ```json  Better prompt ```  ")

    assert result.enhancedPrompt == "Better prompt"


def test_structured_reply_with_empty_improvements_is_kept():
    parsed = parse_model_reply('{"enhancedPrompt": "ok", "improvements": []}')

    assert parsed.structured is True
    assert parsed.result.improvements == []


@pytest.mark.parametrize("prompt_type", ["creative", "Formal", "", "LLM-Optimized"])
def test_unknown_prompt_type_fails_before_model_call(llm, prompt_type):
    with pytest.raises(ValidationError) as exc_info:
        enhance("write a blog intro", prompt_type, "Professional", llm)

    assert exc_info.value.errors[0]["field"] == "promptType"
    assert llm.prompts == []


def test_validation_reports_one_message_per_field(llm):
    with pytest.raises(ValidationError) as exc_info:
        enhance("   ", "Poetry", "Casual", llm)

    fields = [e["field"] for e in exc_info.value.errors]
    assert fields == ["prompt", "promptType", "enhancementFocus"]
    assert llm.prompts == []


def test_model_failure_propagates_as_upstream_error(llm):
    llm.queue(UpstreamError())

    with pytest.raises(UpstreamError):
        enhance("write a blog intro", PromptType.CREATIVE, EnhancementFocus.PROFESSIONAL, llm)


def test_instruction_embeds_text_and_parameters():
    instruction = build_enhancement_prompt(
        "write a blog intro", PromptType.TECHNICAL, EnhancementFocus.LLM_OPTIMIZED
    )

    assert 'Original prompt: "write a blog intro"' in instruction
    assert "Selected prompt type: Technical" in instruction
    assert "Enhancement focus: LLM-Optimized" in instruction
    assert '"enhancedPrompt"' in instruction


def test_structured_reply_keeps_extra_keys():
    reply = {
        "enhancedPrompt": "x",
        "improvements": [{"category": "CLARITY", "detail": "d", "impact": "high"}],
        "notes": "n",
    }

    parsed = parse_model_reply(json.dumps(reply))

    assert parsed.structured
    assert parsed.result.model_dump() == reply
