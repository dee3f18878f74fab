"""
Codebase Tutorial Builder - Constants Package

This package contains all configuration constants, magic numbers,
and default values used throughout the application.
"""

from .llm import (
    # LLM Provider Names
    LLM_PROVIDER_OPENAI,
    LLM_PROVIDER_GEMINI,
    LLM_PROVIDER_OPENROUTER,
    LLM_PROVIDER_GENERIC,

    # Environment Variable Names
    ENV_OPENAI_API_KEY,
    ENV_GEMINI_API_KEY,
    ENV_GEMINI_PROJECT_ID,
    ENV_OPENROUTER_API_KEY,
    ENV_LLM_API_BASE_URL,
    ENV_LOG_DIR,
    ENV_LLM_CACHE_FILE,

    # LLM Configuration
    DEFAULT_TEMPERATURE,
    DEFAULT_MAX_OUTPUT_TOKENS,

    # Gateway error kinds
    LLM_ERROR_UNAVAILABLE,
    LLM_ERROR_BLOCKED,
    LLM_ERROR_INCOMPLETE,
    LLM_ERROR_EMPTY,

    # Retry loop
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_BACKOFF,
    DEFAULT_PARSE_BACKOFF,
)

from .paths import (
    # Directory Names
    LOGS_DIR_NAME,
    DEFAULT_OUTPUT_DIR,

    # Output Files
    INDEX_FILE_NAME,
    ZIP_FILE_SUFFIX,

    # Log File Format
    LOG_FILE_PREFIX,
    LOG_DATE_FORMAT,
)

from .defaults import (
    # Default Argument Values
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_LANGUAGE,
    DEFAULT_MAX_ABSTRACTIONS,

    # Generated content
    ATTRIBUTION_FOOTER,

    # File Patterns
    DEFAULT_INCLUDE_PATTERNS,
    DEFAULT_EXCLUDE_PATTERNS,
)

__all__ = [
    # LLM Provider Names
    'LLM_PROVIDER_OPENAI',
    'LLM_PROVIDER_GEMINI',
    'LLM_PROVIDER_OPENROUTER',
    'LLM_PROVIDER_GENERIC',

    # Environment Variable Names
    'ENV_OPENAI_API_KEY',
    'ENV_GEMINI_API_KEY',
    'ENV_GEMINI_PROJECT_ID',
    'ENV_OPENROUTER_API_KEY',
    'ENV_LLM_API_BASE_URL',
    'ENV_LOG_DIR',
    'ENV_LLM_CACHE_FILE',

    # LLM Configuration
    'DEFAULT_TEMPERATURE',
    'DEFAULT_MAX_OUTPUT_TOKENS',

    # Gateway error kinds
    'LLM_ERROR_UNAVAILABLE',
    'LLM_ERROR_BLOCKED',
    'LLM_ERROR_INCOMPLETE',
    'LLM_ERROR_EMPTY',

    # Retry loop
    'DEFAULT_MAX_ATTEMPTS',
    'DEFAULT_RETRY_BACKOFF',
    'DEFAULT_PARSE_BACKOFF',

    # Directory Names
    'LOGS_DIR_NAME',
    'DEFAULT_OUTPUT_DIR',

    # Output Files
    'INDEX_FILE_NAME',
    'ZIP_FILE_SUFFIX',

    # Log File Format
    'LOG_FILE_PREFIX',
    'LOG_DATE_FORMAT',

    # Default Argument Values
    'DEFAULT_MAX_FILE_SIZE',
    'DEFAULT_LANGUAGE',
    'DEFAULT_MAX_ABSTRACTIONS',

    # Generated content
    'ATTRIBUTION_FOOTER',

    # File Patterns
    'DEFAULT_INCLUDE_PATTERNS',
    'DEFAULT_EXCLUDE_PATTERNS',
]
