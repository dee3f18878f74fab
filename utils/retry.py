"""
================================================================================
RETRY-VALIDATE LOOP
================================================================================
Drives the completion gateway, the extractor and a stage validator together.

LLM output fails in three independent ways, each with its own handling:

    gateway failure     → record, sleep backoff * attempt, retry
    extraction failure  → record (with a response snippet), short sleep, retry
    validation failure  → record the validator's reason, short sleep, retry

Validators return True or a human-readable reason string. They may
canonicalise the parsed value in place (e.g. "3 # path" -> 3); the loop hands
back the same object it passed to the validator.

The prompt is rebuilt from prompt_factory on every attempt but is otherwise
identical. Only the first attempt may be served from the cache, so a cached
response that failed validation is not replayed on retry.
================================================================================
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from constants.llm import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_BACKOFF,
    DEFAULT_PARSE_BACKOFF,
    RESPONSE_SNIPPET_LENGTH,
)
from utils.call_llm import call_llm
from utils.extract import ExtractionError

logger = logging.getLogger("llm_logger")


@dataclass(slots=True)
class RetryResult:
    success: bool
    data: Any = None
    error: str | None = None
    attempts: int = 0
    errors: list[str] = field(default_factory=list)


def _snippet(value) -> str:
    if not isinstance(value, str):
        try:
            value = json.dumps(value, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            value = repr(value)
    if len(value) > RESPONSE_SNIPPET_LENGTH:
        return value[:RESPONSE_SNIPPET_LENGTH] + "..."
    return value


async def call_llm_with_retry(
    prompt_factory: Callable[[], str],
    parser: Callable[[str], Any],
    validator: Callable[[Any], "bool | str"],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    use_cache: bool = True,
    llm=call_llm,
    backoff: float = DEFAULT_RETRY_BACKOFF,
    parse_backoff: float = DEFAULT_PARSE_BACKOFF,
    sleep=asyncio.sleep,
) -> RetryResult:
    """
    Run prompt → completion → parse → validate until it succeeds or the
    attempt budget is spent.

    Args:
        prompt_factory: Builds the prompt for an attempt
        parser: Turns response text into a value; raises ExtractionError
        validator: Returns True, or a reason string on failure
        max_attempts: Total gateway invocations allowed
        use_cache: Allow the first attempt to be served from the cache
        llm: Async gateway, (prompt, use_cache) -> LLMResult
        backoff: Base delay after gateway failures, multiplied by attempt number
        parse_backoff: Delay after extraction or validation failures
        sleep: Awaitable sleep, injectable for tests

    Returns:
        RetryResult: data on success, the last recorded reason on failure
    """
    errors = []
    last_error = "Failed after multiple retries."

    for attempt in range(1, max_attempts + 1):
        is_last = attempt == max_attempts
        prompt = prompt_factory()

        result = await llm(prompt, use_cache=(use_cache and attempt == 1))
        if not result.success:
            last_error = result.error or "LLM call failed to return text."
            errors.append(last_error)
            logger.warning(f"LLM attempt {attempt}/{max_attempts} failed: {last_error}")
            print(f"  ⚠️  Attempt {attempt}/{max_attempts} failed: {last_error}")
            if not is_last:
                await sleep(backoff * attempt)
            continue

        try:
            parsed = parser(result.text)
        except ExtractionError as e:
            last_error = f"Failed to parse LLM response: {e} Response:\n{_snippet(result.text)}"
            errors.append(last_error)
            logger.warning(f"Parse attempt {attempt}/{max_attempts} failed: {last_error}")
            print(f"  ⚠️  Attempt {attempt}/{max_attempts}: could not parse response ({e})")
            if not is_last:
                await sleep(parse_backoff)
            continue

        verdict = validator(parsed)
        if verdict is True:
            return RetryResult(success=True, data=parsed, attempts=attempt, errors=errors)

        last_error = f"LLM response validation failed: {verdict}"
        errors.append(last_error)
        logger.warning(
            f"Validation attempt {attempt}/{max_attempts} failed: {verdict}. Parsed:\n{_snippet(parsed)}"
        )
        print(f"  ⚠️  Attempt {attempt}/{max_attempts}: {verdict}")
        if not is_last:
            await sleep(parse_backoff)

    return RetryResult(success=False, error=last_error, attempts=max_attempts, errors=errors)
