# riskwise/llm/retry.py
"""Retry logic for LLM API calls with exponential backoff."""

import logging

import httpx
from ollama import ResponseError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

try:
    import openai
except ImportError:
    openai = None  # LM Studio support is an optional extra

logger = logging.getLogger(__name__)

# Transient HTTP statuses worth another attempt
RETRYABLE_STATUSES = frozenset({408, 429, 500, 502, 503, 504})


def is_out_of_memory(exception: BaseException) -> bool:
    """True for Ollama's "model requires more system memory" error."""
    return (
        isinstance(exception, ResponseError)
        and exception.status_code == 500
        and "requires more system memory" in str(exception).lower()
    )


def is_retryable(exception: BaseException) -> bool:
    """
    Returns True if the exception should be retried.

    Retryable conditions:
    - ConnectionError or an httpx transport failure (server unavailable, timeout)
    - ResponseError with a transient status, except OOM (handled by fallback)
    - openai connection failures, or openai status errors with a transient status
    """
    if isinstance(exception, (ConnectionError, httpx.TransportError)):
        return True

    if isinstance(exception, ResponseError):
        if exception.status_code not in RETRYABLE_STATUSES:
            return False
        return not is_out_of_memory(exception)

    if openai is not None:
        if isinstance(exception, openai.APIConnectionError):
            return True
        if isinstance(exception, openai.APIStatusError):
            return exception.status_code in RETRYABLE_STATUSES

    return False


# Tenacity retry decorator for LLM API calls
llm_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=4, max=60),
    retry=retry_if_exception(is_retryable),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
