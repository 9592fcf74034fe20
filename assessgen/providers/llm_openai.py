from __future__ import annotations

import logging
import os

from assessgen.providers.base import SYSTEM_PROMPT, LLMProvider

log = logging.getLogger("assessgen.llm")


class OpenAIProvider(LLMProvider):
    def __init__(self, model: str = "gpt-4o-mini"):
        import openai
        self.client = openai.AsyncOpenAI(
            api_key=os.environ.get("OPENAI_API_KEY", ""),
        )
        self.model = model

    async def generate(self, prompt: str, temperature: float = 0.7) -> str:
        resp = await self.client.chat.completions.create(
            model=self.model,
            temperature=temperature,
            # json_object mode requires the word "JSON" in the messages; the system prompt has it.
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )
        choice = resp.choices[0]
        if not choice.message.content:
            raise ValueError(f"Empty response from {self.name()} (finish_reason={choice.finish_reason})")
        if choice.finish_reason == "length":
            log.warning("%s stopped at the token limit; reply is probably truncated", self.name())
        return choice.message.content

    def name(self) -> str:
        return f"openai/{self.model}"
