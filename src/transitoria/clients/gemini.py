"""Google Gemini client for text generation.

Uses the google-genai SDK (v1.0+).
"""

from dataclasses import dataclass
from typing import Any

import structlog
from google import genai
from google.genai import types

from transitoria.config import get_settings

logger = structlog.get_logger(__name__)


@dataclass
class GeminiResponse:
    """Response from Gemini API."""

    content: str
    stop_reason: str
    usage: dict[str, int]


class GeminiClient:
    """Thin async wrapper around the Gemini text generation API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ):
        settings = get_settings()
        if api_key is None and settings.google_api_key is not None:
            api_key = settings.google_api_key.get_secret_value()
        if not api_key:
            raise ValueError("Gemini API key is not configured (GOOGLE_API_KEY)")

        self._api_key = api_key
        self._model_name = model or settings.gemini_model
        self._max_tokens = max_tokens or settings.llm_max_tokens
        self._temperature = temperature if temperature is not None else settings.llm_temperature

        self._client = genai.Client(api_key=self._api_key)
        self._logger = logger.bind(client="gemini", model=self._model_name)

    def _parse_response(self, response: Any) -> GeminiResponse:
        """Parse Gemini response into our format."""
        content = ""
        stop_reason = "end_turn"

        if response.candidates:
            candidate = response.candidates[0]
            parts = candidate.content.parts if candidate.content else None
            for part in parts or []:
                if getattr(part, "text", None):
                    content += part.text

            stop_reason_map = {
                "STOP": "end_turn",
                "MAX_TOKENS": "max_tokens",
                "SAFETY": "content_filter",
                "RECITATION": "content_filter",
            }
            finish_reason = getattr(candidate.finish_reason, "name", candidate.finish_reason)
            stop_reason = stop_reason_map.get(str(finish_reason), "end_turn")

        usage = {"input_tokens": 0, "output_tokens": 0}
        if getattr(response, "usage_metadata", None):
            usage["input_tokens"] = (
                getattr(response.usage_metadata, "prompt_token_count", 0) or 0
            )
            usage["output_tokens"] = (
                getattr(response.usage_metadata, "candidates_token_count", 0) or 0
            )

        return GeminiResponse(content=content, stop_reason=stop_reason, usage=usage)

    async def generate(self, system_prompt: str, prompt: str) -> GeminiResponse:
        """Generate a text response.

        Args:
            system_prompt: Instruction defining the model's role.
            prompt: The user prompt.

        Returns:
            GeminiResponse with content and usage info.
        """
        self._logger.debug("generating_response", prompt_chars=len(prompt))

        config = types.GenerateContentConfig(
            max_output_tokens=self._max_tokens,
            temperature=self._temperature,
            system_instruction=system_prompt,
        )

        try:
            response = await self._client.aio.models.generate_content(
                model=self._model_name,
                contents=prompt,
                config=config,
            )
            parsed = self._parse_response(response)

            self._logger.info(
                "response_generated",
                stop_reason=parsed.stop_reason,
                input_tokens=parsed.usage["input_tokens"],
                output_tokens=parsed.usage["output_tokens"],
            )
            return parsed

        except Exception as e:
            self._logger.error("api_error", error=str(e))
            raise
