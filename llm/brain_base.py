from __future__ import annotations

from abc import ABC, abstractmethod

from llm.types import LLMResult, ModelConfig
from shared.models import LLMMessage, ModelInfo


class Brain(ABC):
    """Абстракция сервиса дополнений: история сообщений на входе, ответ ассистента на выходе."""

    @abstractmethod
    def generate(self, messages: list[LLMMessage], config: ModelConfig) -> LLMResult:
        raise NotImplementedError

    @abstractmethod
    def list_models(self) -> list[ModelInfo]:
        raise NotImplementedError
