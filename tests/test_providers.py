"""Tests for provider construction and the LLM clients."""
from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import pytest

from assessgen.config import Settings
from assessgen.providers import get_llm
from assessgen.providers.base import SYSTEM_PROMPT
from assessgen.providers.llm_anthropic import AnthropicProvider
from assessgen.providers.llm_ollama import OllamaProvider
from assessgen.providers.llm_openai import OpenAIProvider


class TestGetLLM:
    def test_ollama(self):
        llm = get_llm(Settings(llm_model="llama3.1:8b", ollama_url="http://gpu-box:11434/"))
        assert isinstance(llm, OllamaProvider)
        assert llm.base_url == "http://gpu-box:11434"
        assert llm.name() == "ollama/llama3.1:8b"

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            get_llm(Settings(llm_provider="carrier-pigeon"))


class TestOllamaProvider:
    @pytest.mark.asyncio
    async def test_generate(self, monkeypatch):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"response": '{"questions": []}', "eval_count": 12})

        real_client = httpx.AsyncClient
        monkeypatch.setattr(
            "assessgen.providers.llm_ollama.httpx.AsyncClient",
            lambda **kw: real_client(transport=httpx.MockTransport(handler), **kw),
        )
        llm = OllamaProvider(model="qwen3:8b")
        assert await llm.generate("Write questions", temperature=0.3) == '{"questions": []}'
        assert seen["url"] == "http://localhost:11434/api/generate"
        assert seen["body"]["prompt"] == "Write questions"
        assert seen["body"]["options"] == {"temperature": 0.3}
        assert seen["body"]["stream"] is False

    @pytest.mark.asyncio
    async def test_http_error_raises(self, monkeypatch):
        real_client = httpx.AsyncClient
        monkeypatch.setattr(
            "assessgen.providers.llm_ollama.httpx.AsyncClient",
            lambda **kw: real_client(transport=httpx.MockTransport(lambda r: httpx.Response(500)), **kw),
        )
        with pytest.raises(httpx.HTTPStatusError):
            await OllamaProvider().generate("Write questions")


class _Recorder:
    """Stand-in for an SDK ``create`` coroutine."""

    def __init__(self, reply):
        self.reply = reply
        self.kwargs = None

    async def __call__(self, **kwargs):
        self.kwargs = kwargs
        return self.reply


def _anthropic_message(text, stop_reason="end_turn"):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)], stop_reason=stop_reason)


def _openai_completion(content, finish_reason="stop"):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason=finish_reason)])


class TestAnthropicProvider:
    @pytest.mark.asyncio
    async def test_generate(self):
        llm = AnthropicProvider(model="claude-test", max_tokens=512)
        create = _Recorder(_anthropic_message('{"questions": []}'))
        llm.client = SimpleNamespace(messages=SimpleNamespace(create=create))
        assert await llm.generate("Write questions", temperature=0.2) == '{"questions": []}'
        assert create.kwargs["system"] == SYSTEM_PROMPT
        assert create.kwargs["max_tokens"] == 512
        assert create.kwargs["temperature"] == 0.2
        assert llm.name() == "anthropic/claude-test"

    @pytest.mark.asyncio
    async def test_empty_reply_raises(self):
        llm = AnthropicProvider()
        create = _Recorder(_anthropic_message("  ", stop_reason="max_tokens"))
        llm.client = SimpleNamespace(messages=SimpleNamespace(create=create))
        with pytest.raises(ValueError, match="stop_reason=max_tokens"):
            await llm.generate("Write questions")


class TestOpenAIProvider:
    @pytest.mark.asyncio
    async def test_generate(self):
        llm = OpenAIProvider(model="gpt-test")
        create = _Recorder(_openai_completion('{"questions": []}'))
        llm.client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
        assert await llm.generate("Write questions") == '{"questions": []}'
        assert create.kwargs["response_format"] == {"type": "json_object"}
        assert create.kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}

    @pytest.mark.asyncio
    async def test_empty_reply_raises(self):
        llm = OpenAIProvider()
        create = _Recorder(_openai_completion(None, finish_reason="content_filter"))
        llm.client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
        with pytest.raises(ValueError, match="finish_reason=content_filter"):
            await llm.generate("Write questions")
