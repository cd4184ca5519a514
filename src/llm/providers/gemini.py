"""Google Gemini LLM provider using google-genai SDK."""

from ..base import ImageInput, LLMAuthError, LLMError, LLMProvider, LLMRateLimitError


def _handle_gemini_error(e: Exception):
    err_str = str(e).lower()
    if "api key" in err_str or "authentication" in err_str or "permission" in err_str:
        raise LLMAuthError(f"Gemini auth failed: {e}") from e
    if ("resource" in err_str and "exhausted" in err_str) or "rate" in err_str or "429" in err_str:
        raise LLMRateLimitError(f"Gemini rate limit: {e}") from e
    raise LLMError(f"Gemini API error: {e}") from e


class GeminiProvider(LLMProvider):
    """Google Gemini provider (google-genai SDK)."""

    provider_name = "gemini"

    def __init__(self, api_key: str | None = None, model: str | None = None, client=None):
        self.model_name = model or "gemini-2.5-flash-lite"

        if client:
            self.client = client
            return

        try:
            from google import genai
        except ImportError:
            raise LLMError("google-genai package not installed. Run: pip install 'orbit[gemini]'")

        self.client = genai.Client(api_key=api_key)

    def generate(
        self,
        messages: list[dict],
        system: str | None = None,
        max_tokens: int = 2000,
        images: list[ImageInput] | None = None,
        json_mode: bool = False,
    ) -> str:
        try:
            from google.genai import types
        except ImportError:
            raise LLMError("google-genai package not installed")

        contents: list = ["\n".join(msg["content"] for msg in messages)]
        for img in images or []:
            contents.append(types.Part.from_bytes(data=img.data, mime_type=img.mime_type))

        config = types.GenerateContentConfig(
            system_instruction=system,
            max_output_tokens=max_tokens,
            temperature=0.1,
            response_mime_type="application/json" if json_mode else None,
        )
        try:
            response = self.client.models.generate_content(
                model=self.model_name, contents=contents, config=config
            )
            return response.text
        except Exception as e:
            _handle_gemini_error(e)
