from typing import List, Optional

from infra.config import ScanPolicy

from .normalizer import matches_deny_list
from .schemas import BookCandidate, Confidence

# Shortest title kept at each confidence level
MIN_TITLE_LENGTH = {
    Confidence.HIGH: 0,
    Confidence.MEDIUM: 3,
    Confidence.LOW: 5,
}


def keep_candidate(candidate: BookCandidate, policy: Optional[ScanPolicy] = None) -> bool:
    policy = policy or ScanPolicy()
    if candidate.rejected:
        return False
    if matches_deny_list(candidate.author, policy):
        return False
    return len(candidate.title) >= MIN_TITLE_LENGTH[candidate.confidence]


def rank_candidates(candidates: List[BookCandidate], policy: Optional[ScanPolicy] = None) -> List[BookCandidate]:
    """Filter, then order by confidence and title length (both descending)."""
    policy = policy or ScanPolicy()
    kept = [c for c in candidates if keep_candidate(c, policy)]
    return sorted(kept, key=lambda c: (c.confidence.rank, len(c.title)), reverse=True)
