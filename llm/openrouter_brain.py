from __future__ import annotations

import os
from typing import Final

import requests

from llm.brain_base import Brain
from llm.types import LLMResult, LLMUsage, ModelConfig
from shared.models import JSONValue, LLMMessage, ModelInfo

OPENROUTER_ENDPOINT: Final[str] = "https://openrouter.ai/api/v1/chat/completions"
OPENROUTER_MODELS_ENDPOINT: Final[str] = "https://openrouter.ai/api/v1/models"
DEFAULT_REFERER: Final[str] = "https://github.com/hitekchat/hitekchat"
APP_TITLE: Final[str] = "0xHiTek Chat"
DEFAULT_TIMEOUT: Final[int | None] = None
MODEL_FETCH_TIMEOUT: Final[int] = 20


class OpenRouterBrain(Brain):
    """Клиент OpenRouter: chat/completions и список моделей."""

    def __init__(self, api_key: str | None, *, referer: str = DEFAULT_REFERER) -> None:
        self.api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        self.referer = referer

    def _build_headers(self) -> dict[str, str]:
        if not self.api_key:
            raise RuntimeError("Не задан OpenRouter API key (env OPENROUTER_API_KEY).")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": self.referer,
            "X-Title": APP_TITLE,
            "Content-Type": "application/json",
        }

    def generate(self, messages: list[LLMMessage], config: ModelConfig) -> LLMResult:
        headers = self._build_headers()
        payload: dict[str, JSONValue] = {
            "model": config.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": config.temperature,
        }
        if config.max_tokens is not None:
            payload["max_tokens"] = config.max_tokens

        # без таймаута
        response = requests.post(
            OPENROUTER_ENDPOINT,
            json=payload,
            headers=headers,
            timeout=DEFAULT_TIMEOUT,
        )
        response.raise_for_status()
        data_json = response.json()
        if not isinstance(data_json, dict):
            raise RuntimeError("Некорректный ответ OpenRouter.")
        data: dict[str, JSONValue] = data_json
        choices_raw = data.get("choices")
        if not isinstance(choices_raw, list) or not choices_raw:
            raise RuntimeError("Пустой или некорректный ответ OpenRouter.")
        first_choice = choices_raw[0]
        if not isinstance(first_choice, dict):
            raise RuntimeError("Некорректный формат choices.")
        message_raw = first_choice.get("message")
        if not isinstance(message_raw, dict):
            raise RuntimeError("Некорректный формат message.")
        content = message_raw.get("content")

        usage: LLMUsage | None = None
        usage_block = data.get("usage")
        if isinstance(usage_block, dict):
            usage = LLMUsage(
                prompt_tokens=int(usage_block.get("prompt_tokens") or 0),
                completion_tokens=int(usage_block.get("completion_tokens") or 0),
                total_tokens=int(usage_block.get("total_tokens") or 0),
            )

        return LLMResult(text=content if isinstance(content, str) else "", usage=usage)

    def list_models(self) -> list[ModelInfo]:
        response = requests.get(
            OPENROUTER_MODELS_ENDPOINT,
            headers=self._build_headers(),
            timeout=MODEL_FETCH_TIMEOUT,
        )
        response.raise_for_status()
        return parse_models_payload(response.json())


def parse_models_payload(payload: object) -> list[ModelInfo]:
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if not isinstance(data, list):
        return []
    models: list[ModelInfo] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        model_id = item.get("id")
        if not isinstance(model_id, str) or not model_id.strip():
            continue
        name = item.get("name")
        models.append(
            ModelInfo(id=model_id.strip(), name=name if isinstance(name, str) and name else None)
        )
    return models
