"""Prompt catalog: style key -> translation instruction text."""

from __future__ import annotations

import json
import logging
import os
from typing import Mapping, Optional

from core.config import DEFAULT_PROMPT_KEY

LOGGER = logging.getLogger(__name__)


class PromptCatalog:
    """Instruction texts keyed by prompt key, with a default fallback.

    An empty instruction means "let the translation gateway use its built-in
    default", so a catalog that failed to load is still usable.
    """

    def __init__(self, prompts: Optional[Mapping[str, str]] = None) -> None:
        self._prompts: dict[str, str] = dict(prompts or {})
        self._prompts.setdefault(DEFAULT_PROMPT_KEY, "")
        self._warned: set[str] = set()

    @classmethod
    def load(cls, path: str) -> "PromptCatalog":
        """Load prompts from a JSON object file; never raises."""

        if not os.path.exists(path):
            LOGGER.warning("%s not found, using default prompts only", path)
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, ValueError):
            LOGGER.exception("Failed to load prompts from %s", path)
            return cls()

        if not isinstance(raw, dict):
            LOGGER.error("Prompts file %s must contain a JSON object", path)
            return cls()

        prompts: dict[str, str] = {}
        for key, value in raw.items():
            if not isinstance(value, str):
                LOGGER.warning("Prompt '%s' is not a string, skipping", key)
                continue
            prompts[str(key)] = value

        LOGGER.info("Loaded %s prompts from %s", len(prompts), path)
        return cls(prompts)

    def lookup(self, key: str) -> str:
        if key in self._prompts:
            return self._prompts[key]
        if key not in self._warned:
            self._warned.add(key)
            LOGGER.warning("Prompt key '%s' not found, will use default", key)
        return self._prompts[DEFAULT_PROMPT_KEY]

    def __contains__(self, key: object) -> bool:
        return key in self._prompts

    def __len__(self) -> int:
        return len(self._prompts)
