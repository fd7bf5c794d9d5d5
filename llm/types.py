from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ModelConfig:
    model: str
    temperature: float = 0.7
    max_tokens: int | None = None


@dataclass(frozen=True)
class LLMUsage:
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class LLMResult:
    text: str
    usage: LLMUsage | None = None

    @property
    def total_tokens(self) -> int:
        return self.usage.total_tokens if self.usage is not None else 0
