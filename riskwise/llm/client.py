# riskwise/llm/client.py
"""Ollama client with health checks, JSON-mode generation, and fallback support."""

import logging

import httpx
from ollama import AsyncClient, ResponseError

from .retry import is_out_of_memory, llm_retry

logger = logging.getLogger(__name__)


class OllamaClient:
    """
    Async Ollama client for suggestion prompts.

    Handles:
    - Health checks (server + model availability)
    - Streaming generation with content accumulation
    - JSON output mode, since every suggestion prompt expects a JSON object
    - Automatic fallback to a smaller model on OOM errors
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        fallback_model: str | None = None,
        timeout: int = 120,
    ):
        """
        Initialize Ollama client.

        Args:
            base_url: Ollama API base URL (e.g., "http://localhost:11434")
            model: Primary model name (e.g., "qwen2.5:14b-instruct")
            fallback_model: Fallback model on OOM (e.g., "qwen2.5:7b-instruct")
            timeout: Request timeout in seconds
        """
        self.base_url = base_url
        self.model = model
        self.fallback_model = fallback_model
        self.client = AsyncClient(host=base_url, timeout=httpx.Timeout(timeout))

    async def health_check(self) -> bool:
        """
        Check Ollama server health and model availability.

        Returns:
            True if server is reachable (the model can be pulled on demand).
            False if server is down or unreachable.
        """
        try:
            response = await self.client.list()
            available_models = [m.model for m in response.models]

            model_base = self.model.split(":")[0]
            if not any(model_base in m or self.model == m for m in available_models):
                logger.warning(
                    f"Model {self.model} not found in available models. "
                    f"It can be pulled on demand during generation."
                )
            return True

        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return False

    @llm_retry
    async def generate(
        self, messages: list[dict], model: str | None = None, json_mode: bool = True
    ) -> str:
        """
        Generate a response from Ollama with streaming.

        Args:
            messages: Chat messages in format [{"role": "user", "content": "..."}]
            model: Model to use (defaults to self.model)
            json_mode: Constrain output to a JSON value

        Returns:
            Full accumulated response text.

        Raises:
            ResponseError: On API errors (retry decorator handles transient errors)
        """
        model = model or self.model
        logger.info(f"Generating with model={model}, messages={len(messages)}")

        accumulated = []
        async for chunk in await self.client.chat(
            model=model,
            messages=messages,
            stream=True,
            format="json" if json_mode else None,
        ):
            if content := chunk.message.content:
                accumulated.append(content)

        result = "".join(accumulated)
        logger.info(f"Generated {len(result)} chars")
        return result

    async def generate_with_fallback(self, messages: list[dict]) -> tuple[str, str]:
        """
        Generate with automatic fallback to smaller model on OOM.

        Args:
            messages: Chat messages

        Returns:
            (response_text, model_used): Response and which model generated it

        Raises:
            ResponseError: On non-OOM errors or if fallback also fails
        """
        try:
            result = await self.generate(messages, model=self.model)
            return result, self.model

        except ResponseError as e:
            if not is_out_of_memory(e):
                raise
            if self.fallback_model is None:
                logger.error("OOM error but no fallback model configured")
                raise

            logger.warning(f"OOM error on {self.model}, falling back to {self.fallback_model}")
            result = await self.generate(messages, model=self.fallback_model)
            return result, self.fallback_model
