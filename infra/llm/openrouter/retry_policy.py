#!/usr/bin/env python3
import time
import uuid
import random
import requests
from typing import Callable, Dict, Any, TypeVar, Optional

from infra.pipeline.logger import PipelineLogger

from .errors import MalformedResponseError

T = TypeVar('T')

RETRYABLE_STATUS_CODES = (408, 413, 422, 429)


class RetryPolicy:
    def __init__(
        self,
        logger: Optional[PipelineLogger] = None,
        max_retries: int = 3,
        base_delay: float = 2.0,
        jitter: float = 1.5,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.logger = logger or PipelineLogger("shelf", "retry")
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.jitter = min(jitter, base_delay)
        self.sleep = sleep

    def execute_with_retry(
        self,
        fn: Callable[[], T],
        payload: Dict[str, Any]
    ) -> T:
        model = payload.get('model', 'unknown')

        for attempt in range(self.max_retries):
            is_last = attempt == self.max_retries - 1
            try:
                result = fn()

                if attempt > 0:
                    self.logger.debug(
                        f"Request succeeded after {attempt+1} attempts",
                        model=model,
                        attempts=attempt+1
                    )

                return result

            except MalformedResponseError as e:
                if is_last:
                    raise
                self._backoff("Malformed response", model, attempt, error=str(e))

            except requests.exceptions.HTTPError as e:
                status_code = e.response.status_code if e.response is not None else None

                if is_last or not self._should_retry(status_code):
                    self.logger.debug(
                        "HTTP error not retryable, raising",
                        model=model,
                        status_code=status_code,
                        attempt=attempt+1,
                        error=str(e)
                    )
                    raise

                if status_code in (413, 422):
                    self._inject_nonce(payload, attempt)

                self._backoff(f"HTTP {status_code} error", model, attempt, status_code=status_code)

            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                if is_last:
                    raise
                self._backoff(type(e).__name__, model, attempt, error=str(e))

        raise RuntimeError("unreachable: retry loop exited without result")

    def _backoff(self, reason: str, model: str, attempt: int, **fields):
        delay = self.base_delay + random.uniform(-self.jitter, self.jitter)
        self.logger.debug(
            f"{reason}, retrying in {delay:.1f}s",
            model=model,
            attempt=attempt+1,
            max_retries=self.max_retries,
            delay_seconds=delay,
            **fields
        )
        self.sleep(delay)

    def _should_retry(self, status: Optional[int]) -> bool:
        if status is None:
            return False
        return status >= 500 or status in RETRYABLE_STATUS_CODES

    def _inject_nonce(self, payload: Dict[str, Any], attempt: int):
        """Vary the prompt so providers that cache rejected payloads see a new request."""
        nonce = uuid.uuid4().hex[:16]
        marker = f"\n<!-- retry_{attempt}_id: {nonce} -->"

        messages = payload.get('messages', [])
        for msg in reversed(messages):
            if msg.get('role') != 'user':
                continue

            content = msg.get('content', '')
            if isinstance(content, str):
                msg['content'] = content + marker
            elif isinstance(content, list):
                content_copy = []
                for item in content:
                    item_copy = item.copy()
                    if item_copy.get('type') == 'text':
                        item_copy['text'] = f"{item_copy.get('text', '')}{marker}"
                    content_copy.append(item_copy)
                msg['content'] = content_copy
            return
