"""
Provider-neutral interface for the chat models behind resume parsing and interviews.
"""
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from dataclasses import dataclass, field


@dataclass
class LLMResponse:
    """Completion text plus token usage for one call."""
    content: str
    tokens_in: int = 0
    tokens_out: int = 0
    model: str = ""
    cost_estimate: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)


class LLMProvider(ABC):
    """A chat model backend. File methods are optional."""

    @abstractmethod
    def chat(
        self,
        messages: list[Dict[str, Any]],
        model: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Run one chat completion.

        `messages` use the OpenAI shape: a role plus either a string or a list
        of content parts. Extra keyword arguments (response_format, ...) are
        passed through to the backend.
        """
        pass

    def upload_file(self, file_name: str, data: bytes, mime_type: str = "application/pdf") -> str:
        """
        Upload a document the model can read natively.

        Returns:
            Provider file id to reference in a message content part

        Raises:
            NotImplementedError: If the provider cannot read documents
        """
        raise NotImplementedError(f"{type(self).__name__} does not support file uploads")

    def delete_file(self, file_id: str) -> None:
        """Remove a previously uploaded document."""
        raise NotImplementedError(f"{type(self).__name__} does not support file uploads")

    def estimate_cost(self, tokens_in: int, tokens_out: int, model: str) -> float:
        """USD estimate for logging; 0.0 when the backend has no price table."""
        return 0.0
