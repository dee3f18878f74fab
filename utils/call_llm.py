"""
================================================================================
CODEBASE TUTORIAL BUILDER - COMPLETION GATEWAY
================================================================================
One text-completion request per call, routed to whichever provider is
configured in the environment.

PROVIDER PRIORITY (checked in this order):
==========================================
1. OPENAI_API_KEY     → Uses OpenAI API
2. GEMINI_API_KEY     → Uses Google Gemini API
3. GEMINI_PROJECT_ID  → Uses Vertex AI (requires ADC setup)
4. OPENROUTER_API_KEY → Uses OpenRouter (access to many models)
5. LLM_API_BASE_URL   → Uses any OpenAI-compatible API (Ollama, etc.)

FAILURES:
=========
Provider failures never raise out of call_llm(). They come back as an
LLMResult whose `kind` is one of:
    unavailable - provider unreachable, misconfigured, or the SDK raised
    blocked     - the provider's safety policy blocked the content
    incomplete  - generation stopped for a reason other than a normal stop
    empty       - the call succeeded but produced no text
Retrying is the caller's job (see utils/retry.py).

CACHING:
========
Successful responses are stored in a ResponseCache keyed on the exact prompt
(see utils/cache.py). A cache hit skips the provider entirely.

LOGGING:
========
All prompts and responses go to the "llm_logger" logger. Call
configure_llm_logging() once at startup to write them to
logs/llm_calls_YYYYMMDD.log.
================================================================================
"""

# =============================================================================
# IMPORTS
# =============================================================================
import asyncio
import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime

import requests

from constants.llm import (
    LLM_PROVIDER_OPENAI,
    LLM_PROVIDER_GEMINI,
    LLM_PROVIDER_OPENROUTER,
    LLM_PROVIDER_GENERIC,
    ENV_OPENAI_API_KEY,
    ENV_OPENAI_MODEL,
    ENV_GEMINI_API_KEY,
    ENV_GEMINI_PROJECT_ID,
    ENV_GEMINI_LOCATION,
    ENV_GEMINI_MODEL,
    ENV_OPENROUTER_API_KEY,
    ENV_OPENROUTER_MODEL,
    ENV_OPENROUTER_REFERER,
    ENV_OPENROUTER_TITLE,
    ENV_LLM_API_BASE_URL,
    ENV_LLM_API_KEY,
    ENV_LLM_MODEL,
    ENV_LOG_DIR,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_GEMINI_LOCATION,
    DEFAULT_OPENROUTER_MODEL,
    DEFAULT_GENERIC_MODEL,
    DEFAULT_GENERIC_BASE_URL,
    OPENROUTER_API_URL,
    HTTP_TIMEOUT,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_K,
    DEFAULT_TOP_P,
    DEFAULT_MAX_OUTPUT_TOKENS,
    GEMINI_SAFETY_CATEGORIES,
    GEMINI_SAFETY_THRESHOLD,
    NORMAL_FINISH_REASONS,
    LLM_ERROR_UNAVAILABLE,
    LLM_ERROR_BLOCKED,
    LLM_ERROR_INCOMPLETE,
    LLM_ERROR_EMPTY,
    DEFAULT_OPENROUTER_REFERER,
    DEFAULT_OPENROUTER_TITLE,
)
from constants.paths import (
    LOGS_DIR_NAME,
    LOG_FILE_PREFIX,
    LOG_DATE_FORMAT,
    LOG_FORMAT,
)
from utils.cache import ResponseCache, get_default_cache

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================
# Named logger so prompt/response dumps stay out of the root logger
logger = logging.getLogger("llm_logger")
logger.setLevel(logging.INFO)
logger.propagate = False


def configure_llm_logging(log_directory: str | None = None) -> str:
    """
    Attach a dated file handler to the LLM logger.

    Args:
        log_directory: Where to write logs. Defaults to $LOG_DIR or ./logs

    Returns:
        str: Path of the log file
    """
    log_directory = log_directory or os.getenv(ENV_LOG_DIR, LOGS_DIR_NAME)
    os.makedirs(log_directory, exist_ok=True)
    log_file = os.path.join(
        log_directory, f"{LOG_FILE_PREFIX}{datetime.now().strftime(LOG_DATE_FORMAT)}.log"
    )

    # Only add handler if not already present (prevents duplicates on re-configure)
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == os.path.abspath(log_file):
            return log_file

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)
    return log_file


# =============================================================================
# RESULT TYPES
# =============================================================================
@dataclass(slots=True)
class ProviderResponse:
    """What a provider returned, before normalisation."""

    text: str | None
    finish_reason: str | None = None
    block_reason: str | None = None


@dataclass(slots=True)
class LLMResult:
    text: str | None = None
    error: str | None = None
    kind: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None and bool(self.text)


def normalize_response(response: ProviderResponse) -> LLMResult:
    """Turn provider-specific completion signals into an LLMResult."""
    if response.block_reason:
        return LLMResult(
            error=f"LLM Error: Prompt blocked due to {response.block_reason}.",
            kind=LLM_ERROR_BLOCKED,
        )
    finish_reason = (response.finish_reason or "").upper()
    if finish_reason in ("SAFETY", "CONTENT_FILTER", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"):
        return LLMResult(
            error=f"LLM Error: Response blocked. Finish Reason: {response.finish_reason}.",
            kind=LLM_ERROR_BLOCKED,
        )
    if finish_reason and finish_reason not in NORMAL_FINISH_REASONS:
        return LLMResult(
            error=f"LLM Error: Incomplete response. Finish Reason: {response.finish_reason}.",
            kind=LLM_ERROR_INCOMPLETE,
        )
    if not response.text or not response.text.strip():
        return LLMResult(error="LLM Error: Received empty response text.", kind=LLM_ERROR_EMPTY)
    return LLMResult(text=response.text)


# =============================================================================
# PROVIDER DETECTION
# =============================================================================
def get_llm_provider() -> str:
    """
    Determine which LLM provider to use based on environment variables.

    Returns:
        str: The provider name ("OPENAI", "GEMINI", "OPENROUTER", or "GENERIC")

    Raises:
        ValueError: If no provider is configured
    """
    if os.getenv(ENV_OPENAI_API_KEY):
        return LLM_PROVIDER_OPENAI
    elif os.getenv(ENV_GEMINI_API_KEY) or os.getenv(ENV_GEMINI_PROJECT_ID):
        return LLM_PROVIDER_GEMINI
    elif os.getenv(ENV_OPENROUTER_API_KEY):
        return LLM_PROVIDER_OPENROUTER
    elif os.getenv(ENV_LLM_API_BASE_URL):
        return LLM_PROVIDER_GENERIC
    else:
        raise ValueError(
            f"No LLM provider configured. Set one of: "
            f"{ENV_OPENAI_API_KEY}, {ENV_GEMINI_API_KEY}, {ENV_GEMINI_PROJECT_ID}, "
            f"{ENV_OPENROUTER_API_KEY}, or {ENV_LLM_API_BASE_URL}"
        )


# =============================================================================
# MAIN LLM CALLING FUNCTION
# =============================================================================
async def call_llm(
    prompt: str,
    use_cache: bool = True,
    cache: ResponseCache | None = None,
    provider=None,
) -> LLMResult:
    """
    Send one prompt to the configured provider.

    Args:
        prompt: The prompt to send to the LLM
        use_cache: Read from and write to the cache
        cache: Cache to use; defaults to the process-wide cache
        provider: Optional async callable prompt -> ProviderResponse,
                  overriding environment-based provider selection

    Returns:
        LLMResult: text on success, error and kind otherwise
    """
    start_time = time.time()
    logger.info(f"PROMPT: {prompt}")

    if use_cache:
        cache = cache if cache is not None else get_default_cache()
        cached = cache.get(prompt)
        if cached is not None:
            logger.info("CACHE HIT: Using cached response")
            print("  💾 Cache HIT")
            return LLMResult(text=cached)

    try:
        if provider is None:
            provider_name = get_llm_provider()
            provider = _PROVIDERS[provider_name]
        else:
            provider_name = getattr(provider, "__name__", "custom")
        print(f"  ☁️  {provider_name}...", end=" ", flush=True)
        response = await provider(prompt)
    except Exception as e:
        logger.error(f"LLM API Call Failed: {e}")
        print("✗")
        return LLMResult(error=f"LLM API Error: {e}", kind=LLM_ERROR_UNAVAILABLE)

    result = normalize_response(response)
    elapsed = time.time() - start_time
    time_str = f"{elapsed/60:.1f}m" if elapsed >= 60 else f"{elapsed:.1f}s"

    if not result.success:
        logger.error(f"{result.error} ({time_str})")
        print(f"✗ {result.kind} ({time_str})")
        return result

    logger.info(f"RESPONSE: {result.text}")
    print(f"✓ {len(result.text):,} chars ({time_str})")

    if use_cache:
        cache.set(prompt, result.text)

    return result


# =============================================================================
# PROVIDER-SPECIFIC IMPLEMENTATIONS
# =============================================================================
async def _call_llm_openai(prompt: str) -> ProviderResponse:
    """
    Call OpenAI through the async SDK.

    Environment variables:
    - OPENAI_API_KEY: Required - your OpenAI API key
    - OPENAI_MODEL: Optional - model to use (default: gpt-4o)
    """
    from openai import AsyncOpenAI

    client = AsyncOpenAI(api_key=os.getenv(ENV_OPENAI_API_KEY))
    response = await client.chat.completions.create(
        model=os.getenv(ENV_OPENAI_MODEL, DEFAULT_OPENAI_MODEL),
        messages=[{"role": "user", "content": prompt}],
        temperature=DEFAULT_TEMPERATURE,
    )
    choice = response.choices[0]
    return ProviderResponse(text=choice.message.content, finish_reason=choice.finish_reason)


async def _call_llm_gemini(prompt: str) -> ProviderResponse:
    """
    Call Google Gemini, with API key (preferred) or Vertex AI.

    Environment variables:
    - GEMINI_API_KEY: API key for Gemini (preferred)
    - GEMINI_PROJECT_ID: For Vertex AI (requires gcloud auth)
    - GEMINI_LOCATION: Vertex AI location (default: us-central1)
    - GEMINI_MODEL: Model to use (default: gemini-2.0-flash)

    IMPORTANT: API key is checked FIRST to avoid Vertex AI ADC issues!
    """
    from google import genai
    from google.genai import types

    if os.getenv(ENV_GEMINI_API_KEY):
        client = genai.Client(api_key=os.getenv(ENV_GEMINI_API_KEY))
    else:
        client = genai.Client(
            vertexai=True,
            project=os.getenv(ENV_GEMINI_PROJECT_ID),
            location=os.getenv(ENV_GEMINI_LOCATION, DEFAULT_GEMINI_LOCATION),
        )

    config = types.GenerateContentConfig(
        temperature=DEFAULT_TEMPERATURE,
        top_k=DEFAULT_TOP_K,
        top_p=DEFAULT_TOP_P,
        max_output_tokens=DEFAULT_MAX_OUTPUT_TOKENS,
        safety_settings=[
            types.SafetySetting(category=category, threshold=GEMINI_SAFETY_THRESHOLD)
            for category in GEMINI_SAFETY_CATEGORIES
        ],
    )
    response = await client.aio.models.generate_content(
        model=os.getenv(ENV_GEMINI_MODEL, DEFAULT_GEMINI_MODEL),
        contents=[types.Content(role="user", parts=[types.Part(text=prompt)])],
        config=config,
    )

    feedback = response.prompt_feedback
    if feedback is not None and feedback.block_reason:
        return ProviderResponse(text=None, block_reason=_enum_name(feedback.block_reason))
    if not response.candidates:
        return ProviderResponse(text=None)
    return ProviderResponse(
        text=response.text,
        finish_reason=_enum_name(response.candidates[0].finish_reason),
    )


async def _call_llm_openrouter(prompt: str) -> ProviderResponse:
    """
    Call OpenRouter - a gateway to many LLM providers.

    Environment variables:
    - OPENROUTER_API_KEY: Required - your OpenRouter API key
    - OPENROUTER_MODEL: Model to use (default: openai/gpt-4o)
    - OPENROUTER_REFERER / OPENROUTER_TITLE: tracking headers
    """
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {os.getenv(ENV_OPENROUTER_API_KEY)}",
        "HTTP-Referer": os.getenv(ENV_OPENROUTER_REFERER, DEFAULT_OPENROUTER_REFERER),
        "X-Title": os.getenv(ENV_OPENROUTER_TITLE, DEFAULT_OPENROUTER_TITLE),
    }
    payload = {
        "model": os.getenv(ENV_OPENROUTER_MODEL, DEFAULT_OPENROUTER_MODEL),
        "messages": [{"role": "user", "content": prompt}],
        "temperature": DEFAULT_TEMPERATURE,
        "max_tokens": DEFAULT_MAX_OUTPUT_TOKENS,
    }
    return await asyncio.to_thread(_post_chat_completion, OPENROUTER_API_URL, headers, payload)


async def _call_llm_generic(prompt: str) -> ProviderResponse:
    """
    Call a generic OpenAI-compatible API (Ollama, LM Studio, vLLM, ...).

    Environment variables:
    - LLM_API_BASE_URL: The base URL (default: http://localhost:11434)
    - LLM_API_KEY: Optional API key (not needed for local models)
    - LLM_MODEL: Model to use (default: llama3.2)
    """
    base_url = os.getenv(ENV_LLM_API_BASE_URL, DEFAULT_GENERIC_BASE_URL)
    api_key = os.getenv(ENV_LLM_API_KEY, "")

    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    payload = {
        "model": os.getenv(ENV_LLM_MODEL, DEFAULT_GENERIC_MODEL),
        "messages": [{"role": "user", "content": prompt}],
        "temperature": DEFAULT_TEMPERATURE,
        "max_tokens": DEFAULT_MAX_OUTPUT_TOKENS,
    }
    url = f"{base_url.rstrip('/')}/v1/chat/completions"
    return await asyncio.to_thread(_post_chat_completion, url, headers, payload)


def _post_chat_completion(url: str, headers: dict, payload: dict) -> ProviderResponse:
    """Blocking POST to an OpenAI-style chat completions endpoint."""
    response = requests.post(url, headers=headers, json=payload, timeout=HTTP_TIMEOUT)
    response.raise_for_status()
    choice = response.json()["choices"][0]
    return ProviderResponse(
        text=choice.get("message", {}).get("content"),
        finish_reason=choice.get("finish_reason"),
    )


def _enum_name(value) -> str | None:
    if value is None:
        return None
    return getattr(value, "name", str(value))


# IMPORTANT: keys must match the names returned by get_llm_provider()
_PROVIDERS = {
    LLM_PROVIDER_OPENAI: _call_llm_openai,
    LLM_PROVIDER_GEMINI: _call_llm_gemini,
    LLM_PROVIDER_OPENROUTER: _call_llm_openrouter,
    LLM_PROVIDER_GENERIC: _call_llm_generic,
}


# =============================================================================
# TEST SCRIPT
# =============================================================================
if __name__ == "__main__":
    """
    Test the LLM configuration.

    Run this file directly to verify your API key is working:
        python -m utils.call_llm
    """
    import sys

    try:
        print(f"Using LLM provider: {get_llm_provider()}")
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    result = asyncio.run(call_llm("Say hello in one sentence.", use_cache=False))
    if not result.success:
        print(f"Error: {result.error}")
        sys.exit(1)
    print(f"Response: {result.text}")
