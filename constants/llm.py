"""
================================================================================
LLM PROVIDER CONSTANTS
================================================================================
This file contains all constants related to LLM providers, API configuration,
model defaults and the retry/validation loop. This is the single source of
truth for LLM configuration.

PROVIDER PRIORITY (checked in this order):
==========================================
1. OPENAI_API_KEY     → Uses OpenAI API
2. GEMINI_API_KEY     → Uses Google Gemini API
3. GEMINI_PROJECT_ID  → Uses Vertex AI (requires ADC setup)
4. OPENROUTER_API_KEY → Uses OpenRouter (access to many models)
5. LLM_API_BASE_URL   → Uses any OpenAI-compatible API (Ollama, etc.)
================================================================================
"""

# =============================================================================
# LLM PROVIDER NAMES
# =============================================================================
LLM_PROVIDER_OPENAI = "OPENAI"
LLM_PROVIDER_GEMINI = "GEMINI"
LLM_PROVIDER_OPENROUTER = "OPENROUTER"
LLM_PROVIDER_GENERIC = "GENERIC"

# =============================================================================
# ENVIRONMENT VARIABLE NAMES
# =============================================================================
# OpenAI
ENV_OPENAI_API_KEY = "OPENAI_API_KEY"
ENV_OPENAI_MODEL = "OPENAI_MODEL"

# Gemini / Vertex AI
ENV_GEMINI_API_KEY = "GEMINI_API_KEY"
ENV_GEMINI_PROJECT_ID = "GEMINI_PROJECT_ID"
ENV_GEMINI_LOCATION = "GEMINI_LOCATION"
ENV_GEMINI_MODEL = "GEMINI_MODEL"

# OpenRouter
ENV_OPENROUTER_API_KEY = "OPENROUTER_API_KEY"
ENV_OPENROUTER_MODEL = "OPENROUTER_MODEL"
ENV_OPENROUTER_REFERER = "OPENROUTER_REFERER"
ENV_OPENROUTER_TITLE = "OPENROUTER_TITLE"

# Generic OpenAI-compatible API
ENV_LLM_API_BASE_URL = "LLM_API_BASE_URL"
ENV_LLM_API_KEY = "LLM_API_KEY"
ENV_LLM_MODEL = "LLM_MODEL"

# Logging and caching
ENV_LOG_DIR = "LOG_DIR"
ENV_LLM_CACHE_FILE = "LLM_CACHE_FILE"

# =============================================================================
# DEFAULT MODEL VALUES
# =============================================================================
DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_GEMINI_LOCATION = "us-central1"
DEFAULT_OPENROUTER_MODEL = "openai/gpt-4o"
DEFAULT_GENERIC_MODEL = "llama3.2"
DEFAULT_GENERIC_BASE_URL = "http://localhost:11434"

# =============================================================================
# API URLs
# =============================================================================
OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"

# HTTP timeouts for requests-based providers: (connect, read) in seconds
HTTP_TIMEOUT = (30, 300)

# =============================================================================
# GENERATION CONFIGURATION
# =============================================================================
DEFAULT_TEMPERATURE = 0.3       # Lower temperature for more deterministic code analysis
DEFAULT_TOP_K = 1
DEFAULT_TOP_P = 1.0
DEFAULT_MAX_OUTPUT_TOKENS = 8192

# Gemini safety categories, all blocked at BLOCK_MEDIUM_AND_ABOVE
GEMINI_SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)
GEMINI_SAFETY_THRESHOLD = "BLOCK_MEDIUM_AND_ABOVE"

# Finish reasons that count as a normal completion (compared upper-cased)
NORMAL_FINISH_REASONS = {"STOP", "MAX_TOKENS", "LENGTH"}

# =============================================================================
# GATEWAY ERROR KINDS
# =============================================================================
LLM_ERROR_UNAVAILABLE = "unavailable"   # Provider unreachable or misconfigured
LLM_ERROR_BLOCKED = "blocked"           # Content blocked by safety policy
LLM_ERROR_INCOMPLETE = "incomplete"     # Finished for a non-normal reason
LLM_ERROR_EMPTY = "empty"               # Nominal success but no text

# =============================================================================
# RETRY / VALIDATION LOOP
# =============================================================================
DEFAULT_MAX_ATTEMPTS = 3            # Attempts per LLM-backed stage
DEFAULT_RETRY_BACKOFF = 2.0         # Seconds, multiplied by the attempt number
DEFAULT_PARSE_BACKOFF = 1.0         # Seconds after extraction/validation failures
RESPONSE_SNIPPET_LENGTH = 500       # Raw response chars kept in failure reasons
MIN_CHAPTER_LENGTH = 10             # Shortest acceptable chapter body

# =============================================================================
# APP METADATA (for OpenRouter tracking)
# =============================================================================
DEFAULT_OPENROUTER_REFERER = "https://github.com"
DEFAULT_OPENROUTER_TITLE = "Codebase Tutorial Builder"
