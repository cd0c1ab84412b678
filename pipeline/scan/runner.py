"""
Scan pipeline: one image in, a ranked list of books out.

    plan sections -> detect per section -> normalize -> dedup
        -> secondary validation -> dedup -> rank
"""

import time
from typing import Callable, Optional

from infra.config import LibraryConfig, ScanConfig
from infra.llm import LLMClient, RateLimiter
from infra.llm.openrouter import OpenRouterTransport, RetryPolicy
from infra.pipeline.logger import PipelineLogger

from .dedup import deduplicate
from .detector import DetectionClient
from .normalizer import normalize_candidates
from .planner import plan_sections
from .ranker import rank_candidates
from .schemas import ScanResult
from .validator import SecondaryValidator

ProgressCallback = Callable[[int, int], None]


class ScanPipeline:
    def __init__(
        self,
        detector: DetectionClient,
        validator: SecondaryValidator,
        scan_config: Optional[ScanConfig] = None,
        logger: Optional[PipelineLogger] = None,
    ):
        self.detector = detector
        self.validator = validator
        self.scan_config = scan_config or ScanConfig()
        self.logger = logger or PipelineLogger("shelf", "scan")

    @property
    def policy(self):
        return self.scan_config.policy

    @classmethod
    def from_config(
        cls,
        config: LibraryConfig,
        logger: Optional[PipelineLogger] = None,
        llm_client: Optional[LLMClient] = None,
    ) -> "ScanPipeline":
        """
        Build a pipeline whose remote calls use the configured providers.

        Each step authenticates with its own provider's key and is paced
        to that provider's `rate_limit`. Validation is also never faster
        than `scan.validation_delay_seconds`.
        """
        logger = logger or PipelineLogger("shelf", "scan")
        scan = config.scan

        detection_provider = config.get_llm_provider(config.defaults.detection_provider)
        validation_provider = config.get_llm_provider(config.defaults.validation_provider)
        if detection_provider is None:
            raise ValueError(f"Unknown detection provider: {config.defaults.detection_provider}")
        if validation_provider is None:
            raise ValueError(f"Unknown validation provider: {config.defaults.validation_provider}")

        # One client per API key; steps that share a key share a client
        clients = {}

        def client_for(provider_name: str) -> LLMClient:
            if llm_client is not None:
                return llm_client
            api_key = config.provider_api_key(provider_name)
            if api_key not in clients:
                llm_logger = logger.child("llm")
                clients[api_key] = LLMClient(
                    transport=OpenRouterTransport(logger=llm_logger, api_key=api_key),
                    retry=RetryPolicy(logger=llm_logger, max_retries=scan.max_retries),
                    logger=llm_logger,
                )
            return clients[api_key]

        detection_limiter = None
        if detection_provider.rate_limit:
            detection_limiter = RateLimiter.from_interval(1.0 / detection_provider.rate_limit)

        validation_interval = scan.validation_delay_seconds
        if validation_provider.rate_limit:
            validation_interval = max(validation_interval, 1.0 / validation_provider.rate_limit)

        detector = DetectionClient(
            client_for(config.defaults.detection_provider),
            model=detection_provider.model,
            logger=logger.child("detect"),
            crop_sections=scan.crop_sections,
            temperature=scan.detection_temperature,
            max_tokens=scan.detection_max_tokens,
            timeout=scan.timeout_seconds,
            rate_limiter=detection_limiter,
        )
        validator = SecondaryValidator(
            client_for(config.defaults.validation_provider),
            model=validation_provider.model,
            logger=logger.child("validate"),
            rate_limiter=RateLimiter.from_interval(validation_interval),
            max_tokens=scan.validation_max_tokens,
            timeout=scan.timeout_seconds,
        )

        return cls(detector, validator, scan_config=scan, logger=logger)

    def run(
        self,
        image,
        sections_x: Optional[int] = None,
        sections_y: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ScanResult:
        """Scan a loaded PIL image. Per-section failures yield no books, never an exception."""
        sections_x = sections_x or self.scan_config.sections_x
        sections_y = sections_y or self.scan_config.sections_y
        sections = plan_sections(sections_x, sections_y)
        total = len(sections)

        start_time = time.time()
        self.logger.info(
            f"Scanning {sections_x}x{sections_y} grid ({total} sections)",
            sections_x=sections_x,
            sections_y=sections_y,
        )

        raw = []
        for i, region in enumerate(sections):
            raw.extend(self.detector.detect(image, region, index=i, total=total))
            if on_progress:
                on_progress(i + 1, total)

        normalized = normalize_candidates(raw, self.policy)
        unique = deduplicate(normalized, self.policy)
        validated = self.validator.validate_all(unique)
        rejected = [c for c in validated if c.rejected]
        # Corrections can turn two different detections into the same book
        revalidated = deduplicate([c for c in validated if not c.rejected], self.policy)
        ranked = rank_candidates(revalidated, self.policy)

        stats = {
            'raw': len(raw),
            'normalized': len(normalized),
            'unique': len(unique),
            'rejected': len(rejected),
            'validated': len(revalidated),
            'final': len(ranked),
        }
        self.logger.info(
            f"Scan complete: {len(ranked)} books",
            elapsed_seconds=round(time.time() - start_time, 2),
            **stats
        )

        return ScanResult(books=ranked, stats=stats, sections_scanned=total)
