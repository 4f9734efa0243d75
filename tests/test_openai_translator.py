from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Optional

import pytest

from adapters.openai_translator import OpenAITranslator, TranslationError


class FakeCompletions:
    def __init__(self, content: Optional[str]) -> None:
        self._content = content
        self.requests: list[dict] = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        choices = []
        if self._content is not None:
            choices.append(SimpleNamespace(message=SimpleNamespace(content=self._content)))
        return SimpleNamespace(choices=choices)


def _client(content: Optional[str]) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(content)))


def test_instruction_is_sent_as_system_prompt() -> None:
    client = _client("  시장 상승  ")
    translator = OpenAITranslator(model="test-model", client=client)

    result = asyncio.run(translator.translate("Breaking: markets up", "formal tone"))

    assert result == "시장 상승"
    request = client.chat.completions.requests[0]
    assert request["model"] == "test-model"
    assert request["messages"] == [
        {"role": "system", "content": "formal tone"},
        {"role": "user", "content": "Breaking: markets up"},
    ]


def test_empty_instruction_uses_builtin_default() -> None:
    client = _client("bonjour")
    translator = OpenAITranslator(target_language="French", client=client)

    asyncio.run(translator.translate("hello", ""))

    system = client.chat.completions.requests[0]["messages"][0]["content"]
    assert "French" in system


def test_empty_completion_is_an_error() -> None:
    translator = OpenAITranslator(client=_client("   "))
    with pytest.raises(TranslationError):
        asyncio.run(translator.translate("hello", ""))


def test_missing_choices_is_an_error() -> None:
    translator = OpenAITranslator(client=_client(None))
    with pytest.raises(TranslationError):
        asyncio.run(translator.translate("hello", ""))


def test_api_key_required_without_client() -> None:
    with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
        OpenAITranslator(api_key=None)
