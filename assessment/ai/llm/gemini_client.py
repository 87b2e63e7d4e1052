"""
Google Gemini LLM Client

Integration with Google's Gemini API using the google-genai package.

The client is an explicitly constructed object. The application lifespan
builds one and hands it to the grading adapter, so tests and workers can
supply their own instance instead of sharing hidden module state.
"""

import logging
from typing import List, Optional

from google import genai
from google.genai import types

logger = logging.getLogger(__name__)


class GeminiClient:
    """Thin async wrapper around genai.Client used by the graders."""

    def __init__(
        self,
        api_key: Optional[str],
        temperature: float = 0.4,
        max_output_tokens: int = 4096,
    ):
        if not api_key:
            raise ValueError(
                "GEMINI_API_KEY not set. "
                "Get your free key at https://aistudio.google.com/apikey"
            )

        self._client = genai.Client(api_key=api_key)
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        logger.info("Gemini client initialized")

    def _config(self, system_prompt: Optional[str] = None) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=self.temperature,
            top_p=0.95,
            top_k=40,
            max_output_tokens=self.max_output_tokens,
            system_instruction=system_prompt,
        )

    async def generate_text(
        self,
        model: str,
        prompts: List[str],
        system_prompt: Optional[str] = None,
    ) -> str:
        """
        Send text parts as one user turn and return the response text.

        Raises:
            RuntimeError: If the model returned no text
        """
        contents = [
            types.Content(
                role="user",
                parts=[types.Part(text=p) for p in prompts],
            )
        ]

        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=self._config(system_prompt),
            )
        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise

        text = response.text
        if not text:
            raise RuntimeError("Empty response from Gemini")
        return text

    async def transcribe(
        self,
        model: str,
        audio: bytes,
        mime_type: str,
        instructions: str,
    ) -> str:
        """Speech-to-text for an inline audio payload."""
        contents = [
            types.Content(
                role="user",
                parts=[
                    types.Part(text=instructions),
                    types.Part.from_bytes(data=audio, mime_type=mime_type),
                ],
            )
        ]

        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=self._config(),
            )
        except Exception as e:
            logger.error(f"Gemini transcription error: {e}")
            raise

        transcript = (response.text or "").strip()
        if not transcript:
            raise RuntimeError("No transcript received")
        return transcript

