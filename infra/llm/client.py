#!/usr/bin/env python3
"""
LLM Client for the OpenRouter API.

Orchestrates transport, retry and parsing layers:
- OpenRouterTransport: HTTP requests
- RetryPolicy: Retry logic with backoff and nonce
- ResponseParser: Response extraction and malformed handling
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any

from infra.pipeline.logger import PipelineLogger
from infra.llm.openrouter import (
    OpenRouterTransport,
    ResponseParser,
    RetryPolicy,
    add_images_to_messages,
)


@dataclass
class LLMResponse:
    content: str
    model: str
    usage: Dict[str, Any] = field(default_factory=dict)

    @property
    def prompt_tokens(self) -> int:
        return self.usage.get('prompt_tokens', 0)

    @property
    def completion_tokens(self) -> int:
        return self.usage.get('completion_tokens', 0)


class LLMClient:
    """
    Makes OpenRouter chat-completion calls with retries.

    Images are PIL Image objects; they are encoded to JPEG data URLs and
    attached to the last user message. Callers downsample beforehand.
    """

    def __init__(
        self,
        transport: Optional[OpenRouterTransport] = None,
        retry: Optional[RetryPolicy] = None,
        parser: Optional[ResponseParser] = None,
        logger: Optional[PipelineLogger] = None,
        max_retries: int = 3,
    ):
        self.logger = logger or PipelineLogger("shelf", "llm")
        self.transport = transport or OpenRouterTransport(logger=self.logger)
        self.retry = retry or RetryPolicy(logger=self.logger, max_retries=max_retries)
        self.parser = parser or ResponseParser(logger=self.logger)

    def call(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        temperature: float = 0.0,
        max_tokens: Optional[int] = None,
        timeout: int = 120,
        response_format: Optional[Dict] = None,
        images: Optional[List] = None,
    ) -> LLMResponse:
        """
        Make LLM API call with automatic retries.

        Args:
            model: OpenRouter model name (e.g., "google/gemini-2.0-flash-001")
            messages: List of message dicts with 'role' and 'content'
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate (None = no limit)
            timeout: Request timeout in seconds
            response_format: Optional structured output schema
            images: Optional list of PIL Image objects

        Returns:
            LLMResponse with the completion text and token usage

        Raises:
            requests.exceptions.RequestException: On non-retryable or exhausted HTTP errors
            LLMError: On malformed responses or missing credentials
        """
        payload = {
            "model": model,
            "messages": [dict(m) for m in messages],
            "temperature": temperature,
        }

        if max_tokens:
            payload["max_tokens"] = max_tokens

        if response_format:
            payload["response_format"] = response_format

        if images:
            payload["messages"] = add_images_to_messages(payload["messages"], images, logger=self.logger)

        def _make_call():
            result = self.transport.post(payload, timeout)
            return self.parser.parse_chat_completion(result, model)

        parsed = self.retry.execute_with_retry(_make_call, payload)

        return LLMResponse(
            content=parsed.content,
            model=parsed.model_used,
            usage=parsed.usage,
        )

    def simple_call(
        self,
        model: str,
        user_prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """Single user prompt, with an optional system message."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        return self.call(model, messages, **kwargs)
