from infra.config import Config
from infra.storage import ScanLibrary

from infra.llm import (
    LLMClient,
    LLMResponse,
    RateLimiter,
)

from infra.pipeline import (
    PipelineLogger,
    create_logger,
)

__all__ = [
    "Config",

    "ScanLibrary",

    "LLMClient",
    "LLMResponse",
    "RateLimiter",

    "PipelineLogger",
    "create_logger",
]
