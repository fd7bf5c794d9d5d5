from __future__ import annotations

import requests

from client.model_catalog import FALLBACK_MODELS, OFFLINE_MODELS, fetch_models, filter_models
from llm.brain_base import Brain
from llm.types import LLMResult, ModelConfig
from shared.models import LLMMessage, ModelInfo


class ListingBrain(Brain):
    def __init__(self, outcome: list[ModelInfo] | Exception) -> None:
        self.outcome = outcome

    def generate(self, messages: list[LLMMessage], config: ModelConfig) -> LLMResult:
        return LLMResult(text="")

    def list_models(self) -> list[ModelInfo]:
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def test_fetch_models_returns_provider_list() -> None:
    models = [ModelInfo(id="a/b", name="AB")]

    assert fetch_models(ListingBrain(models)) == models


def test_fetch_models_uses_fallback_on_http_error() -> None:
    result = fetch_models(ListingBrain(requests.HTTPError("500")))

    assert result == list(FALLBACK_MODELS)
    assert len(result) == 6


def test_fetch_models_offline_list_on_network_error() -> None:
    result = fetch_models(ListingBrain(requests.ConnectionError("down")))

    assert result == list(OFFLINE_MODELS)
    assert [model.id for model in result] == ["openai/gpt-3.5-turbo"]


def test_filter_models_matches_name_and_id() -> None:
    models = list(FALLBACK_MODELS)

    assert [model.id for model in filter_models(models, "claude")] == [
        "anthropic/claude-3-opus",
        "anthropic/claude-3-sonnet",
    ]
    assert [model.id for model in filter_models(models, "GEMINI")] == ["google/gemini-pro"]
    assert filter_models(models, "  ") == models
    assert filter_models(models, "nothing-like-this") == []
