from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Final

import requests

from llm.brain_base import Brain
from shared.models import ModelInfo

logger = logging.getLogger("HiTekChat.Client")

FALLBACK_MODELS: Final[tuple[ModelInfo, ...]] = (
    ModelInfo(id="openai/gpt-4-turbo-preview", name="GPT-4 Turbo"),
    ModelInfo(id="openai/gpt-3.5-turbo", name="GPT-3.5 Turbo"),
    ModelInfo(id="anthropic/claude-3-opus", name="Claude 3 Opus"),
    ModelInfo(id="anthropic/claude-3-sonnet", name="Claude 3 Sonnet"),
    ModelInfo(id="google/gemini-pro", name="Gemini Pro"),
    ModelInfo(id="meta-llama/llama-2-70b-chat", name="Llama 2 70B"),
)
OFFLINE_MODELS: Final[tuple[ModelInfo, ...]] = (
    ModelInfo(id="openai/gpt-3.5-turbo", name="GPT-3.5 Turbo"),
)


def fetch_models(brain: Brain) -> list[ModelInfo]:
    """Список моделей провайдера; при ошибке API берётся встроенный список."""
    try:
        models = brain.list_models()
    except requests.HTTPError as exc:
        logger.warning("Не удалось получить список моделей: %s", exc)
        return list(FALLBACK_MODELS)
    except (requests.RequestException, RuntimeError, ValueError) as exc:
        logger.error("Error loading models: %s", exc)
        return list(OFFLINE_MODELS)
    return models


def filter_models(models: Sequence[ModelInfo], term: str) -> list[ModelInfo]:
    needle = term.strip().lower()
    if not needle:
        return list(models)
    return [
        model
        for model in models
        if needle in model.label.lower() or needle in model.id.lower()
    ]
