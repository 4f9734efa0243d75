"""OpenAI translation adapter.

Implements the core TranslatorPort with the chat completions API. The route's
prompt becomes the system message; an empty prompt falls back to the built-in
instruction for ``target_language``.
"""

from __future__ import annotations

import logging
from typing import Optional

from openai import AsyncOpenAI

LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TARGET_LANGUAGE = "Korean"
DEFAULT_TIMEOUT_SECONDS = 60.0


class TranslationError(RuntimeError):
    """The translation backend returned no usable text."""


def default_instruction(target_language: str) -> str:
    return (
        f"You are a professional translator. Translate the user's message into "
        f"{target_language}. Preserve the original formatting, line breaks, links, "
        "hashtags, mentions and emoji. Keep names, tickers and numbers accurate. "
        "Reply with the translation only, without comments or quotes."
    )


class OpenAITranslator:
    """Translator adapter backed by an OpenAI-compatible endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        target_language: str = DEFAULT_TARGET_LANGUAGE,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        temperature: float = 0.3,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise RuntimeError("Missing OPENAI_API_KEY in environment")
            # Retries on rate limits/timeouts are handled inside the SDK.
            client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        self._client = client
        self._model = model
        self._temperature = temperature
        self._default_instruction = default_instruction(target_language)

    async def translate(self, text: str, instruction: str) -> str:
        system_prompt = instruction.strip() or self._default_instruction
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": text},
            ],
            temperature=self._temperature,
        )
        if not response.choices:
            raise TranslationError(f"{self._model} returned no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise TranslationError(f"{self._model} returned an empty translation")
        LOGGER.debug("Translated %s chars -> %s chars", len(text), len(content))
        return content.strip()

    async def close(self) -> None:
        await self._client.close()
