from typing import Optional

from .schemas import BookCandidate, RegionDescriptor

HIGH_PRIORITY_THRESHOLD = 0.7

DETECTION_PROMPT = """Scan this image and return ALL visible book spines as JSON.

Read each book spine from left to right. For each spine:
- Extract the title (larger text, usually at top)
- Extract the author (smaller text, usually at bottom, or "Unknown" if not visible)
- Assign confidence: "high" (both clear), "medium" (title clear), "low" (unclear)

RETURN ONLY JSON (no explanations):
[
  {"title": "Book Title", "author": "Author Name or Unknown", "confidence": "high/medium/low"},
  {"title": "Next Book", "author": "Next Author", "confidence": "high"}
]

Return the JSON array now. Do not include any text before or after the array."""


def build_section_context(
    region: RegionDescriptor,
    index: int,
    total: int,
    cropped: bool = False,
) -> str:
    """Positional hints appended to the detection prompt for one section."""
    if cropped:
        focus = "This image is a crop of that section."
    else:
        focus = "Focus only on the books visible in this specific section."

    lines = [
        f"This is section {index + 1} of {total} "
        f"(row {region.row + 1}, column {region.col + 1}) "
        f"with priority {region.priority:.2f}.",
        focus,
        "This section has 10% overlap with neighboring sections for better accuracy.",
    ]
    if region.priority > HIGH_PRIORITY_THRESHOLD:
        lines.append("HIGH PRIORITY: This is a center section - scan very carefully!")
    lines.append("Look carefully at book spines, even partially visible ones.")

    return "\n".join(lines)


def build_detection_prompt(
    region: Optional[RegionDescriptor] = None,
    index: int = 0,
    total: int = 1,
    cropped: bool = False,
) -> str:
    if region is None or region.is_whole_image:
        return DETECTION_PROMPT
    return DETECTION_PROMPT + "\n\n" + build_section_context(region, index, total, cropped)


VALIDATION_PROMPT = """You are a book expert analyzing a detected book from a bookshelf scan.

DETECTED BOOK:
Title: "{title}"
Author: "{author}"
Confidence: {confidence}

TASK: Analyze this book and determine if it's a real book. If it is, correct any OCR errors and return the proper title and author.

RULES:
1. If the title and author are swapped, fix them
2. Fix obvious OCR errors (e.g., "owmen" -> "women")
3. Clean up titles (remove publisher prefixes, series numbers)
4. Validate that the author looks like a real person's name
5. If it's not a real book, mark it as invalid

RETURN FORMAT (JSON only):
{{
  "isValid": true/false,
  "title": "Corrected Title",
  "author": "Corrected Author Name",
  "confidence": "high/medium/low",
  "reason": "Brief explanation of changes made"
}}

EXAMPLES:
Input: Title="Diana Gabaldon", Author="Dragonfly in Amber"
Output: {{"isValid": true, "title": "Dragonfly in Amber", "author": "Diana Gabaldon", "confidence": "high", "reason": "Swapped title and author"}}

Input: Title="controlling owmen", Author="Unknown"
Output: {{"isValid": false, "title": "controlling owmen", "author": "Unknown", "confidence": "low", "reason": "Not a real book"}}

Input: Title="The Great Gatsby", Author="F. Scott Fitzgerald"
Output: {{"isValid": true, "title": "The Great Gatsby", "author": "F. Scott Fitzgerald", "confidence": "high", "reason": "Already correct"}}"""


def build_validation_prompt(candidate: BookCandidate) -> str:
    return VALIDATION_PROMPT.format(
        title=candidate.title,
        author=candidate.author,
        confidence=candidate.confidence.value,
    )
