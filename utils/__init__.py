"""
Codebase Tutorial Builder - Utils Package
"""

from .call_llm import LLMResult, call_llm, get_llm_provider
from .extract import ExtractionError, extract_yaml
from .retry import RetryResult, call_llm_with_retry
from .acquire import AcquisitionError, acquire

__all__ = [
    'LLMResult',
    'call_llm',
    'get_llm_provider',
    'ExtractionError',
    'extract_yaml',
    'RetryResult',
    'call_llm_with_retry',
    'AcquisitionError',
    'acquire',
]
