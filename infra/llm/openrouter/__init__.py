"""
OpenRouter API client components.

Clean separation of concerns:
- transport.py: HTTP requests
- response_parser.py: Response parsing
- retry_policy.py: Retry logic
- images.py: Image attachment
"""

from .errors import LLMError, MalformedResponseError, MissingAPIKeyError
from .transport import OpenRouterTransport
from .response_parser import ResponseParser, ParsedResponse
from .retry_policy import RetryPolicy
from .images import add_images_to_messages, encode_image

__all__ = [
    'LLMError',
    'MalformedResponseError',
    'MissingAPIKeyError',
    'OpenRouterTransport',
    'ResponseParser',
    'ParsedResponse',
    'RetryPolicy',
    'add_images_to_messages',
    'encode_image',
]
