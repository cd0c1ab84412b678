"""
Heuristic cleanup of a single detected book.

Runs before deduplication so fuzzy matching sees cleaned text. Pure:
no I/O, returns a new BookCandidate (or None to drop it).
"""

import re
from typing import Iterable, Optional

from infra.config import ScanPolicy

from .schemas import BookCandidate, Confidence, UNKNOWN_AUTHOR

_WHITESPACE_RE = re.compile(r'\s+')
_DIGITS_PUNCT_RE = re.compile(r'^[\d\s.,;:!?\-_/\\\'"()\[\]]+$')
_SYMBOL_RUN_RE = re.compile(r'^(\S)\1{3,}$')
_SERIES_RE = re.compile(r'\s*(?:#\s*\d+|Vol\.?\s*\d+)\s*$', re.IGNORECASE)
_INITIAL_RE = re.compile(r'^[A-Za-z]\.?$')


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(' ', text or '').strip()


def _words(text: str):
    return collapse_whitespace(text).lower().split(' ') if text and text.strip() else []


def looks_like_title(text: str, function_words: Iterable[str]) -> bool:
    words = set(function_words)
    return any(w in words for w in _words(text))


def looks_like_person_name(text: str, function_words: Iterable[str]) -> bool:
    words = set(function_words)
    tokens = _words(text)
    return 2 <= len(tokens) <= 3 and not any(t in words for t in tokens)


def matches_deny_list(author: Optional[str], policy: ScanPolicy) -> bool:
    lowered = (author or '').lower()
    return any(pattern in lowered for pattern in policy.deny_author_patterns)


def is_junk_title(title: str) -> bool:
    """Empty, digits/punctuation only, or a run of one repeated symbol."""
    compact = collapse_whitespace(title)
    if not compact:
        return True
    if _DIGITS_PUNCT_RE.match(compact):
        return True
    return bool(_SYMBOL_RUN_RE.match(compact.replace(' ', '')))


def should_swap(title: str, author: str, policy: ScanPolicy) -> bool:
    if author == UNKNOWN_AUTHOR:
        return False

    fw = policy.function_words
    title_is_name = looks_like_person_name(title, fw)
    author_is_name = looks_like_person_name(author, fw)

    if title_is_name and looks_like_title(author, fw):
        return True

    # A name-shaped author next to a much longer non-name title
    if author_is_name and not title_is_name:
        return len(title) > len(author) + policy.swap_length_margin

    return False


def strip_publisher_prefix(title: str, prefixes: Iterable[str]) -> str:
    for prefix in prefixes:
        pattern = re.compile(r'^' + re.escape(prefix) + r'\s+', re.IGNORECASE)
        stripped = pattern.sub('', title, count=1)
        if stripped != title and stripped.strip():
            return stripped
    return title


def strip_series_marker(title: str) -> str:
    stripped = _SERIES_RE.sub('', title)
    return stripped if stripped.strip() else title


def strip_author_suffix(author: str, suffixes: Iterable[str]) -> str:
    for suffix in suffixes:
        pattern = re.compile(r'[\s,]+' + re.escape(suffix) + r'$', re.IGNORECASE)
        stripped = pattern.sub('', author)
        if stripped != author:
            return stripped.strip()
    return author


def apply_ocr_fixes(text: str, fixes: dict) -> str:
    for wrong, right in fixes.items():
        text = re.sub(re.escape(wrong), right, text, flags=re.IGNORECASE)
    return collapse_whitespace(text)


def format_author_name(author: str) -> str:
    """
    "Smith, John" -> "John Smith". Names written all upper or all lower
    case are title-cased; single-letter initials are upper-cased.
    """
    if author == UNKNOWN_AUTHOR:
        return author

    name = collapse_whitespace(author)
    parts = [p.strip() for p in name.split(',')]
    if len(parts) == 2 and parts[0] and parts[1]:
        name = f"{parts[1]} {parts[0]}"

    recase = name.isupper() or name.islower()

    formatted = []
    for word in name.split(' '):
        if _INITIAL_RE.match(word):
            formatted.append(word.upper())
        elif recase:
            formatted.append(word[:1].upper() + word[1:].lower())
        else:
            formatted.append(word)

    return ' '.join(formatted)


def _non_space_len(text: str) -> int:
    return len(text.replace(' ', ''))


def normalize_candidate(candidate: BookCandidate, policy: Optional[ScanPolicy] = None) -> Optional[BookCandidate]:
    """Clean one candidate; None means it should be dropped."""
    policy = policy or ScanPolicy()

    title = collapse_whitespace(candidate.title)
    author = collapse_whitespace(candidate.author) or UNKNOWN_AUTHOR
    confidence = candidate.confidence

    if matches_deny_list(author, policy):
        return None

    if is_junk_title(title):
        return None

    if should_swap(title, author, policy):
        title, author = author, title

    title = strip_publisher_prefix(title, policy.publisher_prefixes)
    title = strip_series_marker(title)
    title = apply_ocr_fixes(title, policy.ocr_fixes)

    if author != UNKNOWN_AUTHOR:
        author = strip_author_suffix(author, policy.author_suffixes)
        author = apply_ocr_fixes(author, policy.ocr_fixes)
        author = format_author_name(author) or UNKNOWN_AUTHOR

    if not title:
        return None

    if confidence == Confidence.HIGH and _non_space_len(title) < 2:
        confidence = Confidence.MEDIUM
    if confidence == Confidence.MEDIUM and _non_space_len(title) < 3:
        confidence = Confidence.LOW
    if confidence == Confidence.HIGH and matches_deny_list(author, policy):
        confidence = Confidence.LOW

    return candidate.with_changes(title=title, author=author, confidence=confidence)


def normalize_candidates(candidates: Iterable[BookCandidate], policy: Optional[ScanPolicy] = None):
    policy = policy or ScanPolicy()
    results = []
    for candidate in candidates:
        normalized = normalize_candidate(candidate, policy)
        if normalized is not None:
            results.append(normalized)
    return results
