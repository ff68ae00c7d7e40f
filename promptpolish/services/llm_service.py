"""Generative model clients.

`OpenAILLMClient` is the production client. `OfflineLLMClient` answers with
canned prompt-engineering replies so the API stays usable when no API key is
configured.
"""
import logging
import time
from typing import Optional

from openai import APIError, APITimeoutError, OpenAI

from promptpolish.config import Settings, settings
from promptpolish.core.errors import UpstreamError

logger = logging.getLogger(__name__)


class LLMClient:
    """Single-shot text completion."""

    def complete(self, prompt: str, json_mode: bool = False) -> str:
        """
        Send a prompt to the model and return its text reply.

        Raises:
            UpstreamError: If the model could not be reached or replied
                with an error status.
        """
        raise NotImplementedError


class OpenAILLMClient(LLMClient):
    """LLMClient backed by the OpenAI chat completions API."""

    def __init__(self, config: Settings = settings, client: Optional[OpenAI] = None):
        self.model = config.OPENAI_MODEL
        self.timeout = config.OPENAI_TIMEOUT
        self.temperature = config.OPENAI_TEMPERATURE
        self.max_tokens = config.OPENAI_MAX_TOKENS
        self.max_retries = max(1, config.OPENAI_MAX_RETRIES)
        # Retries are handled here, not inside the SDK
        self.client = client or OpenAI(api_key=config.OPENAI_API_KEY, max_retries=0)

    def complete(self, prompt: str, json_mode: bool = False) -> str:
        try:
            text = self._call_with_retry(prompt, json_mode)
        except (APIError, APITimeoutError) as e:
            logger.error(f"OpenAI API error: {str(e)}")
            raise UpstreamError() from e

        if not text:
            logger.error("OpenAI returned an empty completion")
            raise UpstreamError()
        return text

    def _call_with_retry(self, prompt: str, json_mode: bool) -> str:
        """
        Call OpenAI, retrying timeouts with exponential backoff.

        Raises:
            APIError: If OpenAI API fails
            APITimeoutError: If every attempt times out
        """
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        retry_count = 0
        while True:
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    timeout=self.timeout,
                    **kwargs,
                )
                return response.choices[0].message.content or ""

            except APITimeoutError:
                retry_count += 1
                if retry_count >= self.max_retries:
                    raise
                wait_time = 2 ** retry_count
                logger.warning(
                    f"OpenAI timeout, retry {retry_count}/{self.max_retries} after {wait_time}s"
                )
                time.sleep(wait_time)


class OfflineLLMClient(LLMClient):
    """Canned replies used when no OPENAI_API_KEY is configured."""

    GREETING = (
        "Hi there! I'm running in offline mode because no language model API key "
        "is configured. Ask me about prompt engineering!"
    )
    DEFAULT = (
        "I'm your prompt enhancement assistant, currently running in offline mode. "
        "Share a prompt you'd like to improve, ask for tips on a specific type of "
        "prompt, or tell me what you're trying to accomplish."
    )

    def complete(self, prompt: str, json_mode: bool = False) -> str:
        if json_mode:
            # Not JSON on purpose: callers fall back to their degraded result
            return "Offline mode: configure OPENAI_API_KEY to enhance prompts."

        lowered = prompt.lower()
        if "hello" in lowered or "hi" in lowered.split():
            return self.GREETING
        return self.DEFAULT


def build_llm_client(config: Settings = settings) -> LLMClient:
    if not config.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not found; using offline model client")
        return OfflineLLMClient()
    logger.info(f"OPENAI_API_KEY found; using model {config.OPENAI_MODEL}")
    return OpenAILLMClient(config)
