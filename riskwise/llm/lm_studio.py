# riskwise/llm/lm_studio.py
"""
LM Studio client over its OpenAI-compatible endpoint.

Suggestion prompts always expect a JSON object back, so requests carry a
structured-output response_format. LM Studio only honours the json_schema
form, and an open object schema keeps the reply shape to the prompt.
"""

import logging

from .retry import llm_retry

try:
    from openai import APIStatusError, AsyncOpenAI
except ImportError:
    APIStatusError = None  # type: ignore[assignment,misc]
    AsyncOpenAI = None  # type: ignore[assignment,misc]

logger = logging.getLogger(__name__)

JSON_RESPONSE_FORMAT = {
    "type": "json_schema",
    "json_schema": {"name": "suggestion", "schema": {"type": "object"}},
}

# LM Studio answers 404 when the requested model isn't loaded
MODEL_NOT_LOADED = 404


class LMStudioClient:
    """
    Async suggestion client for a local LM Studio server.

    Mirrors OllamaClient: health_check, generate and generate_with_fallback.
    The fallback model is tried when the primary model isn't loaded.
    Requires: pip install riskwise[lm-studio]
    """

    def __init__(
        self,
        base_url: str = "http://localhost:1234/v1",
        model: str = "local-model",
        fallback_model: str | None = None,
        timeout: int = 120,
    ):
        if AsyncOpenAI is None:
            raise ImportError(
                "openai package required for LM Studio support. "
                "Install with: pip install riskwise[lm-studio]"
            )

        self.base_url = base_url
        self.model = model
        self.fallback_model = fallback_model
        self._client = AsyncOpenAI(base_url=base_url, api_key="lm-studio", timeout=timeout)

    async def health_check(self) -> bool:
        """True when the server answers and lists at least one loaded model."""
        try:
            page = await self._client.models.list()
        except Exception as e:
            logger.error(f"LM Studio health check failed: {e}")
            return False

        loaded = [m.id for m in page.data]
        if self.model not in loaded:
            logger.warning(f"Model {self.model} is not loaded in LM Studio (loaded: {loaded})")
        return bool(loaded)

    @llm_retry
    async def generate(
        self, messages: list[dict], model: str | None = None, json_mode: bool = True
    ) -> str:
        """
        Stream a chat completion and return the accumulated text.

        Args:
            messages: Chat messages
            model: Model override (defaults to self.model)
            json_mode: Ask for a JSON object reply
        """
        model = model or self.model
        logger.info(f"LMStudio.generate: model={model}, messages={len(messages)}")

        request = {"model": model, "messages": messages, "stream": True}
        if json_mode:
            request["response_format"] = JSON_RESPONSE_FORMAT

        parts = []
        async for chunk in await self._client.chat.completions.create(**request):
            if chunk.choices and (content := chunk.choices[0].delta.content):
                parts.append(content)

        result = "".join(parts)
        logger.info(f"LMStudio.generate: {len(result)} chars")
        return result

    async def generate_with_fallback(self, messages: list[dict]) -> tuple[str, str]:
        """
        Generate with the primary model, or the fallback when it isn't loaded.

        Returns:
            (response_text, model_used)
        """
        try:
            return await self.generate(messages), self.model
        except APIStatusError as e:
            if e.status_code != MODEL_NOT_LOADED or self.fallback_model is None:
                raise
            logger.warning(f"{self.model} not loaded in LM Studio, using {self.fallback_model}")
            return await self.generate(messages, model=self.fallback_model), self.fallback_model
