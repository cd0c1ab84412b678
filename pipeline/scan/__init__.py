"""
Bookshelf scan pipeline.

Turns a photo of a bookshelf into a deduplicated, ranked list of books:
section planning, vision-model detection, heuristic normalization,
deduplication, secondary validation and ranking, driven one image at a
time by ScanQueue.
"""

from .schemas import (
    UNKNOWN_AUTHOR,
    BookCandidate,
    BookValidation,
    Confidence,
    DetectedBook,
    RegionDescriptor,
    ScanResult,
)
from .planner import plan_sections, parse_grid
from .detector import DetectionClient, parse_detection_reply
from .normalizer import normalize_candidate, normalize_candidates
from .dedup import deduplicate, title_similarity
from .validator import SecondaryValidator, needs_validation
from .ranker import rank_candidates
from .images import load_scan_image, crop_to_region
from .runner import ScanPipeline
from .queue import ScanQueue, ScanJob, JobStatus, JobSnapshot, QueueSnapshot

__all__ = [
    "UNKNOWN_AUTHOR",
    "BookCandidate",
    "BookValidation",
    "Confidence",
    "DetectedBook",
    "RegionDescriptor",
    "ScanResult",
    "plan_sections",
    "parse_grid",
    "DetectionClient",
    "parse_detection_reply",
    "normalize_candidate",
    "normalize_candidates",
    "deduplicate",
    "title_similarity",
    "SecondaryValidator",
    "needs_validation",
    "rank_candidates",
    "load_scan_image",
    "crop_to_region",
    "ScanPipeline",
    "ScanQueue",
    "ScanJob",
    "JobStatus",
    "JobSnapshot",
    "QueueSnapshot",
]
