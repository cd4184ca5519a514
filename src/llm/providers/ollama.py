"""Ollama provider: a local model served over HTTP (`/api/chat`)."""

import httpx

from ..base import ImageInput, LLMAuthError, LLMError, LLMProvider, LLMRateLimitError

DEFAULT_BASE_URL = "http://localhost:11434"


class OllamaProvider(LLMProvider):
    """Local Ollama server provider."""

    provider_name = "ollama"

    def __init__(
        self,
        model: str | None = None,
        base_url: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = 120.0,
    ):
        self.model = model or "llama3.2"
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)

    def generate(
        self,
        messages: list[dict],
        system: str | None = None,
        max_tokens: int = 2000,
        images: list[ImageInput] | None = None,
        json_mode: bool = False,
    ) -> str:
        api_messages = []
        if system:
            api_messages.append({"role": "system", "content": system})
        api_messages.extend(dict(m) for m in messages)
        if images:
            for msg in reversed(api_messages):
                if msg.get("role") == "user":
                    msg["images"] = [img.b64() for img in images]
                    break

        payload = {
            "model": self.model,
            "messages": api_messages,
            "stream": False,
            "options": {"num_predict": max_tokens, "temperature": 0.1},
        }
        if json_mode:
            payload["format"] = "json"

        try:
            response = self.client.post(f"{self.base_url}/api/chat", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in (401, 403):
                raise LLMAuthError(f"Ollama auth failed: {status}") from e
            if status == 429:
                raise LLMRateLimitError("Ollama rate limit") from e
            raise LLMError(f"Ollama API error {status}: {e.response.text[:200]}") from e
        except httpx.RequestError as e:
            raise LLMError(f"Ollama request failed: {e}") from e
        except ValueError as e:
            raise LLMError(f"Ollama returned invalid JSON: {e}") from e

        content = (data.get("message") or {}).get("content")
        if content is None:
            raise LLMError("Ollama response has no message content")
        return content

    def close(self):
        """Close the HTTP client."""
        self.client.close()
