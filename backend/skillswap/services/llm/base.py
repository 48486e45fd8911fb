"""
Base OpenAI client with timeout, retries, and JSON responses.
Synchronous: callers on the event loop run it through run_in_threadpool.
"""
import json
import time
from typing import Any

from openai import APIError, APITimeoutError, OpenAI

from skillswap.config import get_settings
from skillswap.utils.logger import get_logger

logger = get_logger(__name__)


class LLMServiceError(Exception):
    """Raised when LLM API fails after retries."""

    pass


def get_openai_client() -> OpenAI:
    settings = get_settings()
    if not settings.openai_api_key:
        raise LLMServiceError("OPENAI_API_KEY is not configured")
    return OpenAI(api_key=settings.openai_api_key)


def chat_completion_json(
    client: OpenAI,
    system_prompt: str,
    user_content: str,
    max_tokens: int = 1000,
) -> dict[str, Any]:
    """
    Call OpenAI chat with JSON response. Retries with exponential backoff.
    Returns parsed JSON dict. Raises LLMServiceError on failure.
    """
    settings = get_settings()
    last_error: Exception | None = None
    for attempt in range(settings.openai_max_retries):
        try:
            response = client.chat.completions.create(
                model=settings.openai_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                response_format={"type": "json_object"},
                max_tokens=max_tokens,
                timeout=float(settings.openai_timeout_seconds),
            )
            choice = response.choices[0]
            if not choice.message.content:
                raise LLMServiceError("Empty response from model")
            return json.loads(choice.message.content)
        except (APIError, APITimeoutError, json.JSONDecodeError) as e:
            last_error = e
            logger.warning(
                "OpenAI API attempt failed",
                extra={"attempt": attempt + 1, "error": str(e)[:200]},
            )
            if attempt < settings.openai_max_retries - 1:
                time.sleep(2 ** attempt)
    raise LLMServiceError(f"OpenAI API failed after retries: {last_error}")
