from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from infra.pipeline.logger import PipelineLogger

from .errors import MalformedResponseError


@dataclass
class ParsedResponse:
    content: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    model_used: str
    provider: Optional[str] = None
    usage: Dict[str, Any] = field(default_factory=dict)


class ResponseParser:
    def __init__(self, logger: Optional[PipelineLogger] = None):
        self.logger = logger or PipelineLogger("shelf", "response-parser")

    def parse_chat_completion(self, result: Dict[str, Any], model: str) -> ParsedResponse:
        try:
            content = result['choices'][0]['message']['content']
            usage = result.get('usage') or {}
        except (KeyError, IndexError, TypeError) as e:
            response_keys = list(result.keys()) if isinstance(result, dict) else type(result).__name__
            self.logger.error(
                "Malformed API response from OpenRouter (missing expected keys)",
                model=model,
                error_type=type(e).__name__,
                error=str(e),
                response_keys=response_keys,
            )
            raise MalformedResponseError(
                f"Malformed API response from OpenRouter: missing '{e.args[0] if e.args else 'expected key'}'"
            )

        # Multipart replies come back as a list of text parts
        if isinstance(content, list):
            content = "".join(
                part.get('text', '') for part in content if isinstance(part, dict)
            )

        if not isinstance(content, str) or not content.strip():
            self.logger.error("Empty completion content from OpenRouter", model=model)
            raise MalformedResponseError("OpenRouter returned an empty completion")

        provider = model.split('/')[0] if '/' in model else None

        prompt_tokens = usage.get('prompt_tokens', 0)
        completion_tokens = usage.get('completion_tokens', 0)
        total_tokens = usage.get('total_tokens', prompt_tokens + completion_tokens)

        self.logger.debug(
            "Parsed chat completion",
            model=model,
            provider=provider,
            content_length=len(content),
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
        )

        return ParsedResponse(
            content=content,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=total_tokens,
            model_used=result.get('model', model) if isinstance(result, dict) else model,
            provider=provider,
            usage=usage,
        )
