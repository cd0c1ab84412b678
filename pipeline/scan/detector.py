"""
Detection client: one vision-model round-trip per image section.

Every failure mode (HTTP errors, timeouts, malformed envelopes, missing
credentials, image encoding errors, unparsable replies) degrades to an empty list so a bad
section never aborts the scan.
"""

from typing import List, Optional

import requests
from pydantic import ValidationError

from infra.llm import LLMClient, LLMError, RateLimiter
from infra.pipeline.logger import PipelineLogger

from .images import crop_to_region
from .parsing import load_json_reply
from .prompts import build_detection_prompt
from .schemas import BookCandidate, DetectedBook, RegionDescriptor


def parse_detection_reply(text: str, logger: Optional[PipelineLogger] = None) -> List[BookCandidate]:
    """Turn a detection reply into candidates, or [] if it cannot be read."""
    logger = logger or PipelineLogger("shelf", "detect")

    try:
        data = load_json_reply(text, opener='[')
    except ValueError as e:
        logger.warning(
            "Could not extract JSON from detection reply",
            error=str(e),
            reply_preview=(text or '')[:200],
        )
        return []

    if isinstance(data, dict) and isinstance(data.get('books'), list):
        data = data['books']

    if not isinstance(data, list):
        logger.warning("Detection reply is not a JSON array", reply_type=type(data).__name__)
        return []

    candidates = []
    skipped = 0
    for item in data:
        if not isinstance(item, dict):
            skipped += 1
            continue
        try:
            candidates.append(DetectedBook.model_validate(item).to_candidate())
        except ValidationError:
            skipped += 1

    if skipped:
        logger.debug("Skipped unusable detection items", skipped=skipped, kept=len(candidates))

    return candidates


class DetectionClient:
    def __init__(
        self,
        llm_client: LLMClient,
        model: str,
        logger: Optional[PipelineLogger] = None,
        crop_sections: bool = False,
        temperature: float = 0.1,
        max_tokens: int = 4000,
        timeout: int = 120,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.llm_client = llm_client
        self.model = model
        self.logger = logger or PipelineLogger("shelf", "detect")
        self.crop_sections = crop_sections
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.rate_limiter = rate_limiter

    def detect(
        self,
        image,
        region: Optional[RegionDescriptor] = None,
        index: int = 0,
        total: int = 1,
    ) -> List[BookCandidate]:
        """
        Detect the books in one section of `image` (a PIL image).

        Never raises: network, provider and image-encoding failures are
        logged and give an empty list.
        """
        if self.rate_limiter is not None:
            self.rate_limiter.consume()

        try:
            cropped = False
            if region is not None and self.crop_sections and not region.is_whole_image:
                image = crop_to_region(image, region)
                cropped = True

            prompt = build_detection_prompt(region, index, total, cropped=cropped)
            response = self.llm_client.call(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                images=[image],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                timeout=self.timeout,
            )
        except (requests.exceptions.RequestException, LLMError, OSError, ValueError) as e:
            self.logger.error(
                f"Detection failed for section {index + 1}/{total}",
                section=index + 1,
                error_type=type(e).__name__,
                error=str(e),
            )
            return []

        books = parse_detection_reply(response.content, logger=self.logger)

        self.logger.info(
            f"Section {index + 1}/{total}: found {len(books)} books",
            section=index + 1,
            total_sections=total,
            books_found=len(books),
            prompt_tokens=response.prompt_tokens,
            completion_tokens=response.completion_tokens,
        )

        return books
