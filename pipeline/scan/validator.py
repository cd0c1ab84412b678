"""
Secondary validation: a text-only second opinion on ambiguous books.

Only candidates flagged by needs_validation() are sent. Calls are made
one at a time and paced by a RateLimiter. Any failure leaves the
candidate as it was.
"""

from typing import List, Optional

import requests
from pydantic import ValidationError

from infra.llm import LLMClient, LLMError, RateLimiter
from infra.pipeline.logger import PipelineLogger

from .parsing import load_json_reply
from .prompts import build_validation_prompt
from .schemas import BookCandidate, BookValidation, Confidence, UNKNOWN_AUTHOR


def needs_validation(candidate: BookCandidate) -> bool:
    title = candidate.title.strip()
    return (
        candidate.confidence == Confidence.LOW
        or not candidate.author
        or candidate.author == UNKNOWN_AUTHOR
        or len(title) < 3
        or len(title.split()) == 1
    )


def parse_validation_reply(text: str) -> BookValidation:
    """Raises ValueError / ValidationError when the reply is unusable."""
    data = load_json_reply(text, opener='{')
    if not isinstance(data, dict):
        raise ValueError(f"Validation reply is not a JSON object: {type(data).__name__}")
    return BookValidation.model_validate(data)


class SecondaryValidator:
    def __init__(
        self,
        llm_client: LLMClient,
        model: str,
        logger: Optional[PipelineLogger] = None,
        rate_limiter: Optional[RateLimiter] = None,
        delay_seconds: float = 0.05,
        max_tokens: int = 500,
        timeout: int = 120,
    ):
        self.llm_client = llm_client
        self.model = model
        self.logger = logger or PipelineLogger("shelf", "validate")
        self.rate_limiter = rate_limiter or RateLimiter.from_interval(delay_seconds)
        self.max_tokens = max_tokens
        self.timeout = timeout

    def validate(self, candidate: BookCandidate) -> BookCandidate:
        """Check one candidate; returns it unchanged on any failure."""
        self.rate_limiter.consume()

        try:
            response = self.llm_client.simple_call(
                self.model,
                build_validation_prompt(candidate),
                max_tokens=self.max_tokens,
                timeout=self.timeout,
            )
            verdict = parse_validation_reply(response.content)
        except (requests.exceptions.RequestException, LLMError, ValueError, ValidationError) as e:
            self.logger.warning(
                f"Validation failed for \"{candidate.title}\", keeping original",
                title=candidate.title,
                error_type=type(e).__name__,
                error=str(e),
            )
            return candidate

        if verdict.isValid:
            corrected = candidate.with_changes(
                title=verdict.title or candidate.title,
                author=verdict.author,
                confidence=verdict.confidence,
                note=verdict.reason or None,
            )
            self.logger.info(
                f"Validated \"{candidate.title}\" -> \"{corrected.title}\" by {corrected.author}",
                original_title=candidate.title,
                title=corrected.title,
                author=corrected.author,
                confidence=corrected.confidence.value,
                reason=verdict.reason,
            )
            return corrected

        self.logger.info(
            f"Rejected \"{candidate.title}\" by {candidate.author}",
            title=candidate.title,
            author=candidate.author,
            reason=verdict.reason,
        )
        return candidate.with_changes(
            confidence=Confidence.LOW,
            rejected=True,
            note=verdict.reason or None,
        )

    def validate_all(self, candidates: List[BookCandidate]) -> List[BookCandidate]:
        results = []
        flagged = 0
        for candidate in candidates:
            if not needs_validation(candidate):
                results.append(candidate)
                continue
            flagged += 1
            results.append(self.validate(candidate))

        self.logger.info(
            f"Secondary validation checked {flagged}/{len(candidates)} books",
            flagged=flagged,
            total=len(candidates),
        )
        return results
