"""Claude (Anthropic) LLM provider."""

from ..base import (
    JSON_ONLY_INSTRUCTION,
    ImageInput,
    LLMAuthError,
    LLMError,
    LLMProvider,
    LLMRateLimitError,
)


class ClaudeProvider(LLMProvider):
    """Anthropic Claude provider."""

    provider_name = "claude"

    def __init__(self, api_key: str | None = None, model: str | None = None, client=None):
        self.model = model or "claude-sonnet-4-20250514"

        if client:
            self.client = client
            return

        try:
            from anthropic import Anthropic
        except ImportError:
            raise LLMError("anthropic package not installed. Run: pip install anthropic")

        self.client = Anthropic(api_key=api_key)

    def _handle_error(self, e: Exception):
        from anthropic import APIError, AuthenticationError, RateLimitError

        if isinstance(e, AuthenticationError):
            raise LLMAuthError(f"Claude auth failed: {e}") from e
        if isinstance(e, RateLimitError):
            raise LLMRateLimitError(f"Claude rate limit: {e}") from e
        if isinstance(e, APIError):
            raise LLMError(f"Claude API error: {e}") from e
        raise LLMError(f"Claude error: {e}") from e

    def generate(
        self,
        messages: list[dict],
        system: str | None = None,
        max_tokens: int = 2000,
        images: list[ImageInput] | None = None,
        json_mode: bool = False,
    ) -> str:
        if json_mode:
            system = f"{system}\n\n{JSON_ONLY_INSTRUCTION}" if system else JSON_ONLY_INSTRUCTION

        kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": self._with_images(messages, images),
        }
        if system:
            kwargs["system"] = system

        try:
            response = self.client.messages.create(**kwargs)
            return "".join(b.text for b in response.content if getattr(b, "type", "text") == "text")
        except Exception as e:
            self._handle_error(e)

    @staticmethod
    def _with_images(messages: list[dict], images: list[ImageInput] | None) -> list[dict]:
        """Turn the last user message into image + text content blocks."""
        if not images:
            return messages
        converted = list(messages)
        for i in range(len(converted) - 1, -1, -1):
            msg = converted[i]
            if msg.get("role") != "user":
                continue
            blocks = [
                {
                    "type": "image",
                    "source": {"type": "base64", "media_type": img.mime_type, "data": img.b64()},
                }
                for img in images
            ]
            blocks.append({"type": "text", "text": msg["content"]})
            converted[i] = {"role": "user", "content": blocks}
            break
        return converted
