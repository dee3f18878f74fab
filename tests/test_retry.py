import asyncio

from utils.call_llm import LLMResult
from utils.extract import extract_yaml
from utils.retry import call_llm_with_retry


class ScriptedLLM:
    """Returns the scripted results in order and records each call."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []

    async def __call__(self, prompt, use_cache=True):
        self.calls.append((prompt, use_cache))
        return self.results.pop(0)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def ok(text):
    return LLMResult(text=text)


def failed(message="LLM API Error: down"):
    return LLMResult(error=message, kind="unavailable")


def accept_lists(parsed):
    return True if isinstance(parsed, list) else "Expected a list."


def run(llm, sleep=None, **kwargs):
    return asyncio.run(
        call_llm_with_retry(
            lambda: "the prompt",
            extract_yaml,
            accept_lists,
            llm=llm,
            sleep=sleep or RecordingSleep(),
            **kwargs,
        )
    )


def test_first_attempt_success():
    llm = ScriptedLLM(ok("```yaml\n- 1\n```"))

    result = run(llm)

    assert result.success
    assert result.data == [1]
    assert result.attempts == 1
    assert llm.calls == [("the prompt", True)]


def test_recovers_after_parse_failure_and_bypasses_cache_on_retry():
    llm = ScriptedLLM(ok("no fence here"), ok("```yaml\n- 1\n```"))
    sleep = RecordingSleep()

    result = run(llm, sleep=sleep)

    assert result.success
    assert result.attempts == 2
    assert [use_cache for _, use_cache in llm.calls] == [True, False]
    assert sleep.delays == [1.0]
    assert "Failed to parse LLM response" in result.errors[0]


def test_validation_failure_reason_is_recorded():
    llm = ScriptedLLM(ok("```yaml\nkey: value\n```"), ok("```yaml\n- 2\n```"))

    result = run(llm)

    assert result.success
    assert result.errors == ["LLM response validation failed: Expected a list."]


def test_exhaustion_makes_exactly_max_attempts_calls():
    llm = ScriptedLLM(*[ok("```yaml\nkey: value\n```") for _ in range(4)])
    sleep = RecordingSleep()

    result = run(llm, sleep=sleep, max_attempts=4)

    assert not result.success
    assert len(llm.calls) == 4
    assert result.attempts == 4
    assert result.error == "LLM response validation failed: Expected a list."
    # no sleep after the final attempt
    assert len(sleep.delays) == 3


def test_gateway_failures_back_off_linearly():
    llm = ScriptedLLM(failed(), failed(), failed())
    sleep = RecordingSleep()

    result = run(llm, sleep=sleep, max_attempts=3, backoff=2.0)

    assert not result.success
    assert result.error == "LLM API Error: down"
    assert sleep.delays == [2.0, 4.0]


def test_use_cache_false_never_reads_cache():
    llm = ScriptedLLM(ok("```yaml\n- 1\n```"))

    run(llm, use_cache=False)

    assert llm.calls == [("the prompt", False)]


def test_parse_failure_reason_includes_truncated_snippet():
    llm = ScriptedLLM(ok("x" * 2000))

    result = run(llm, max_attempts=1)

    assert not result.success
    assert "x" * 500 + "..." in result.error
    assert "x" * 501 not in result.error
