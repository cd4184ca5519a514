"""Base LLM provider abstraction."""

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass


class LLMError(Exception):
    """Base LLM error."""


class LLMRateLimitError(LLMError):
    """Rate limit hit."""


class LLMAuthError(LLMError):
    """Authentication failure."""


@dataclass(frozen=True)
class ImageInput:
    """Raw image bytes sent alongside the last user message."""

    data: bytes
    mime_type: str

    def b64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


JSON_ONLY_INSTRUCTION = "Respond with a single valid JSON object and nothing else."


class LLMProvider(ABC):
    """Abstract LLM provider interface."""

    provider_name: str = "base"

    @abstractmethod
    def generate(
        self,
        messages: list[dict],
        system: str | None = None,
        max_tokens: int = 2000,
        images: list[ImageInput] | None = None,
        json_mode: bool = False,
    ) -> str:
        """Generate a response from messages.

        Args:
            messages: List of {"role": ..., "content": ...} dicts
            system: Optional system prompt
            max_tokens: Max response tokens
            images: Images attached to the last user message
            json_mode: Ask the model for a JSON object reply

        Returns:
            Generated text
        """
        ...
