"""
FastAPI dependency that hands routes a configured LLM provider.
"""
import logging
from functools import lru_cache
from fastapi import HTTPException, status

from talentdesk.llm.provider import LLMProvider
from talentdesk.llm.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _default_provider() -> LLMProvider:
    return OpenAIProvider()


def get_llm_provider() -> LLMProvider:
    """Return the shared provider, or 503 when no API key is configured."""
    try:
        return _default_provider()
    except ValueError as e:
        logger.warning(f"LLM provider not available: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI service is not configured"
        )
