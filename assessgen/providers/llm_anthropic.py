from __future__ import annotations

import logging
import os

from assessgen.providers.base import SYSTEM_PROMPT, LLMProvider

log = logging.getLogger("assessgen.llm")


class AnthropicProvider(LLMProvider):
    def __init__(self, model: str = "claude-sonnet-4-20250514", max_tokens: int = 8192):
        import anthropic
        self.client = anthropic.AsyncAnthropic(
            api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
        )
        self.model = model
        self.max_tokens = max_tokens

    async def generate(self, prompt: str, temperature: float = 0.7) -> str:
        message = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=temperature,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
        text = "".join(block.text for block in message.content if block.type == "text")
        if not text.strip():
            raise ValueError(f"Empty response from {self.name()} (stop_reason={message.stop_reason})")
        if message.stop_reason == "max_tokens":
            log.warning("%s hit max_tokens=%d; reply is probably truncated", self.name(), self.max_tokens)
        return text

    def name(self) -> str:
        return f"anthropic/{self.model}"
