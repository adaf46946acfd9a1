"""
OpenAI backend: chat completions and the Files API used for native PDF reading.
"""
import logging
from typing import Optional, Dict, Any
from openai import OpenAI, APIError

from talentdesk.core.config import OPENAI_API_KEY
from talentdesk.llm.provider import LLMProvider, LLMResponse

logger = logging.getLogger(__name__)

# Model pricing per 1M tokens (input/output)
MODEL_PRICING = {
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4o": {"input": 2.50, "output": 10.00},
}


class OpenAIProvider(LLMProvider):
    """LLMProvider backed by the official openai SDK."""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key or OPENAI_API_KEY
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY not configured")
        self.client = OpenAI(api_key=self.api_key)
        logger.info("OpenAI provider initialized")

    def chat(
        self,
        messages: list[Dict[str, Any]],
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """Chat completion with usage and cost filled in."""
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens or 2000,
                **kwargs
            )
        except APIError as e:
            logger.error(f"OpenAI API error: {e}", exc_info=True)
            raise

        content = response.choices[0].message.content or ""
        tokens_in = response.usage.prompt_tokens if response.usage else 0
        tokens_out = response.usage.completion_tokens if response.usage else 0

        return LLMResponse(
            content=content,
            tokens_in=tokens_in,
            tokens_out=tokens_out,
            model=model,
            cost_estimate=self.estimate_cost(tokens_in, tokens_out, model),
            metadata={
                "finish_reason": response.choices[0].finish_reason,
            }
        )

    def upload_file(self, file_name: str, data: bytes, mime_type: str = "application/pdf") -> str:
        """Upload a PDF so chat completions can read it as a `file` content part."""
        uploaded = self.client.files.create(
            file=(file_name, data, mime_type),
            purpose="user_data",
        )
        logger.info(f"File uploaded to OpenAI: file_id={uploaded.id}, name={file_name}")
        return uploaded.id

    def delete_file(self, file_id: str) -> None:
        self.client.files.delete(file_id)
        logger.debug(f"Temporary OpenAI file removed: {file_id}")

    def estimate_cost(self, tokens_in: int, tokens_out: int, model: str) -> float:
        """USD cost from MODEL_PRICING; unknown models fall back to gpt-4o-mini rates."""
        pricing = MODEL_PRICING.get(model, MODEL_PRICING["gpt-4o-mini"])
        cost_input = (tokens_in / 1_000_000) * pricing["input"]
        cost_output = (tokens_out / 1_000_000) * pricing["output"]
        return cost_input + cost_output
