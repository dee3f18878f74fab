import asyncio
import json

import pytest

from constants.llm import (
    LLM_ERROR_BLOCKED,
    LLM_ERROR_EMPTY,
    LLM_ERROR_INCOMPLETE,
    LLM_ERROR_UNAVAILABLE,
)
from utils.cache import JsonFileCache, MemoryCache, get_default_cache, set_default_cache
from utils.call_llm import ProviderResponse, call_llm, get_llm_provider, normalize_response


class FakeProvider:
    def __init__(self, response):
        self.response = response
        self.prompts = []

    async def __call__(self, prompt):
        self.prompts.append(prompt)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def test_cache_hit_skips_provider():
    cache = MemoryCache()
    provider = FakeProvider(ProviderResponse(text="answer", finish_reason="STOP"))

    first = asyncio.run(call_llm("prompt", cache=cache, provider=provider))
    second = asyncio.run(call_llm("prompt", cache=cache, provider=provider))

    assert first.text == second.text == "answer"
    assert len(provider.prompts) == 1


def test_use_cache_false_always_calls_provider_and_does_not_store():
    cache = MemoryCache()
    provider = FakeProvider(ProviderResponse(text="answer", finish_reason="STOP"))

    asyncio.run(call_llm("prompt", use_cache=False, cache=cache, provider=provider))
    asyncio.run(call_llm("prompt", use_cache=False, cache=cache, provider=provider))

    assert len(provider.prompts) == 2
    assert "prompt" not in cache


def test_failures_are_not_cached():
    cache = MemoryCache()
    provider = FakeProvider(ProviderResponse(text="", finish_reason="STOP"))

    result = asyncio.run(call_llm("prompt", cache=cache, provider=provider))

    assert not result.success
    assert result.kind == LLM_ERROR_EMPTY
    assert len(cache) == 0


def test_provider_exception_becomes_unavailable():
    provider = FakeProvider(ConnectionError("boom"))

    result = asyncio.run(call_llm("prompt", use_cache=False, provider=provider))

    assert not result.success
    assert result.kind == LLM_ERROR_UNAVAILABLE
    assert "boom" in result.error


def test_missing_configuration_is_unavailable(monkeypatch):
    for name in ("OPENAI_API_KEY", "GEMINI_API_KEY", "GEMINI_PROJECT_ID", "OPENROUTER_API_KEY", "LLM_API_BASE_URL"):
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(ValueError):
        get_llm_provider()
    result = asyncio.run(call_llm("prompt", use_cache=False))
    assert result.kind == LLM_ERROR_UNAVAILABLE


def test_provider_priority(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("OPENROUTER_API_KEY", "x")
    monkeypatch.setenv("GEMINI_API_KEY", "y")

    assert get_llm_provider() == "GEMINI"


@pytest.mark.parametrize(
    "response, kind",
    [
        (ProviderResponse(text=None, block_reason="SAFETY"), LLM_ERROR_BLOCKED),
        (ProviderResponse(text="partial", finish_reason="SAFETY"), LLM_ERROR_BLOCKED),
        (ProviderResponse(text="partial", finish_reason="RECITATION"), LLM_ERROR_INCOMPLETE),
        (ProviderResponse(text="   ", finish_reason="STOP"), LLM_ERROR_EMPTY),
    ],
)
def test_normalize_response_failure_kinds(response, kind):
    result = normalize_response(response)

    assert not result.success
    assert result.kind == kind


def test_normalize_response_treats_length_limits_as_normal():
    assert normalize_response(ProviderResponse(text="ok", finish_reason="MAX_TOKENS")).success
    assert normalize_response(ProviderResponse(text="ok", finish_reason="length")).success
    assert normalize_response(ProviderResponse(text="ok")).success


def test_blocked_reason_is_reported_verbatim():
    result = normalize_response(ProviderResponse(text=None, block_reason="PROHIBITED_CONTENT"))

    assert "PROHIBITED_CONTENT" in result.error


def test_memory_cache_evicts_least_recently_used():
    cache = MemoryCache(max_entries=2)
    cache.set("a", "1")
    cache.set("b", "2")
    cache.get("a")
    cache.set("c", "3")

    assert cache.get("a") == "1"
    assert cache.get("b") is None
    assert cache.get("c") == "3"


def test_json_file_cache_persists(tmp_path):
    path = tmp_path / "llm_cache.json"
    JsonFileCache(str(path)).set("prompt", "response")

    assert JsonFileCache(str(path)).get("prompt") == "response"
    assert json.loads(path.read_text(encoding="utf-8")) == {"prompt": "response"}


def test_json_file_cache_tolerates_corrupt_file(tmp_path):
    path = tmp_path / "llm_cache.json"
    path.write_text("{not json", encoding="utf-8")

    assert JsonFileCache(str(path)).get("prompt") is None


def test_default_cache_follows_environment(monkeypatch, tmp_path):
    path = tmp_path / "shared_cache.json"
    monkeypatch.setenv("LLM_CACHE_FILE", str(path))
    set_default_cache(None)
    try:
        cache = get_default_cache()
        assert isinstance(cache, JsonFileCache)
        assert get_default_cache() is cache
    finally:
        set_default_cache(None)

    monkeypatch.delenv("LLM_CACHE_FILE")
    assert isinstance(get_default_cache(), MemoryCache)
    set_default_cache(None)
