"""
LLM subsystem for OpenRouter API integration.

Provides:
- LLMClient: Single LLM calls with retry logic and vision support
- RateLimiter: Token bucket rate limiting
- Error types raised by the OpenRouter layer
"""

from infra.llm.client import LLMClient, LLMResponse
from infra.llm.rate_limiter import RateLimiter
from infra.llm.openrouter import LLMError, MalformedResponseError, MissingAPIKeyError

__all__ = [
    "LLMClient",
    "LLMResponse",
    "RateLimiter",
    "LLMError",
    "MalformedResponseError",
    "MissingAPIKeyError",
]
