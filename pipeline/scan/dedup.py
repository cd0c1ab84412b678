"""Merge near-identical detections; the first occurrence wins."""

from typing import List, Optional

from infra.config import ScanPolicy

from .schemas import BookCandidate


def _key(text: str) -> str:
    return (text or '').lower().strip()


def title_similarity(title1: str, title2: str, policy: Optional[ScanPolicy] = None) -> float:
    """
    Word-overlap score in [0, 1].

    Each word of title1 scores 1 for an exact match in title2, or 0.5 when
    both words are longer than partial_word_min_length and one contains the
    other. Returns 0.0 when the word counts differ by more than
    max_word_count_gap.
    """
    policy = policy or ScanPolicy()
    words1 = title1.split()
    words2 = title2.split()

    if not words1 or not words2:
        return 0.0
    if abs(len(words1) - len(words2)) > policy.max_word_count_gap:
        return 0.0

    min_len = policy.partial_word_min_length
    matches = 0.0
    for w1 in words1:
        for w2 in words2:
            if w1 == w2:
                matches += 1
                break
            if len(w1) > min_len and len(w2) > min_len and (w1 in w2 or w2 in w1):
                matches += 0.5
                break

    return matches / max(len(words1), len(words2))


def loose_similarity(title1: str, title2: str) -> float:
    """Share of words that equal or contain a word of the other title."""
    words1 = title1.split()
    words2 = title2.split()

    if not words1 or not words2:
        return 0.0

    matches = 0
    for w1 in words1:
        for w2 in words2:
            if w1 == w2 or w1 in w2 or w2 in w1:
                matches += 1
                break

    return matches / max(len(words1), len(words2))


def is_duplicate(book: BookCandidate, existing: BookCandidate, policy: Optional[ScanPolicy] = None) -> bool:
    """True if `book` should be merged into the already-kept `existing`."""
    policy = policy or ScanPolicy()
    title1 = _key(book.title)
    title2 = _key(existing.title)

    if title1 == title2:
        return True

    if title_similarity(title1, title2, policy) >= policy.title_similarity_threshold:
        return True

    min_len = policy.substring_min_length
    if title2 in title1 and len(title2) > min_len:
        return True
    if title1 in title2 and len(title1) > min_len:
        return True

    if (
        book.has_known_author
        and _key(book.author) == _key(existing.author)
        and loose_similarity(title1, title2) > policy.author_similarity_threshold
    ):
        return True

    return False


def deduplicate(candidates: List[BookCandidate], policy: Optional[ScanPolicy] = None) -> List[BookCandidate]:
    policy = policy or ScanPolicy()
    unique: List[BookCandidate] = []

    for book in candidates:
        if not any(is_duplicate(book, kept, policy) for kept in unique):
            unique.append(book)

    return unique
