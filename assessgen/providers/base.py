from __future__ import annotations

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """Text-in, text-out access to a language model.

    Implementations do no retrying or backoff; callers own that.  Any
    exception raised from ``generate`` is treated as a transport failure.
    """

    @abstractmethod
    async def generate(self, prompt: str, temperature: float = 0.7) -> str:
        ...

    @abstractmethod
    def name(self) -> str:
        ...


SYSTEM_PROMPT = (
    "You write and review assessment questions for teachers. "
    "Reply with a single JSON object and nothing else."
)
