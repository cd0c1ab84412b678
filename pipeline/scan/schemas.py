from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


UNKNOWN_AUTHOR = "Unknown"

_MISSING_AUTHORS = {"", "unknown", "unknown author"}


def canonical_author(author: Optional[str]) -> str:
    """Collapse every spelling of a missing author to UNKNOWN_AUTHOR."""
    if author is None:
        return UNKNOWN_AUTHOR
    author = str(author).strip()
    if author.lower() in _MISSING_AUTHORS:
        return UNKNOWN_AUTHOR
    return author


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]

    @classmethod
    def coerce(cls, value: Any) -> "Confidence":
        """Map model output onto the enum; anything unrecognised is LOW."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.LOW


_CONFIDENCE_RANK = {
    Confidence.HIGH: 3,
    Confidence.MEDIUM: 2,
    Confidence.LOW: 1,
}


@dataclass(frozen=True)
class BookCandidate:
    title: str
    author: str = UNKNOWN_AUTHOR
    confidence: Confidence = Confidence.LOW
    isbn: str = ""
    rejected: bool = False
    note: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'author', canonical_author(self.author))
        object.__setattr__(self, 'confidence', Confidence.coerce(self.confidence))
        object.__setattr__(self, 'isbn', self.isbn or "")

    @property
    def has_known_author(self) -> bool:
        return self.author != UNKNOWN_AUTHOR

    def with_changes(self, **changes) -> "BookCandidate":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['confidence'] = self.confidence.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BookCandidate":
        return cls(
            title=data.get('title', ''),
            author=data.get('author'),
            confidence=data.get('confidence'),
            isbn=data.get('isbn') or "",
            rejected=bool(data.get('rejected', False)),
            note=data.get('note'),
        )


@dataclass(frozen=True)
class RegionDescriptor:
    """A section of the image, in percent of its width/height."""
    x: float
    y: float
    width: float
    height: float
    row: int
    col: int
    priority: float

    @property
    def is_whole_image(self) -> bool:
        return self.width >= 100 and self.height >= 100


WHOLE_IMAGE = RegionDescriptor(x=0.0, y=0.0, width=100.0, height=100.0, row=0, col=0, priority=1.0)


class DetectedBook(BaseModel):
    """One spine as reported by the detection model."""
    title: str = Field(..., min_length=1, description="Title read from the spine")
    author: Optional[str] = Field(None, description="Author, or 'Unknown' if not visible")
    confidence: Confidence = Field(
        Confidence.LOW,
        description="high (title and author clear), medium (title clear), low (unclear)"
    )

    @field_validator('title', mode='before')
    @classmethod
    def clean_title(cls, v):
        if v is None:
            return v
        return str(v).strip()

    @field_validator('author', mode='before')
    @classmethod
    def clean_author(cls, v):
        if v is None:
            return v
        return str(v).strip()

    @field_validator('confidence', mode='before')
    @classmethod
    def coerce_confidence(cls, v):
        return Confidence.coerce(v)

    def to_candidate(self) -> BookCandidate:
        return BookCandidate(
            title=self.title,
            author=self.author,
            confidence=self.confidence,
        )


class BookValidation(BaseModel):
    """Verdict returned by the secondary validation model."""
    isValid: bool = Field(..., description="Is this a real book?")
    title: str = Field("", description="Corrected title")
    author: Optional[str] = Field(None, description="Corrected author name")
    confidence: Confidence = Field(Confidence.LOW, description="high/medium/low")
    reason: str = Field("", max_length=500, description="Brief explanation of changes made")

    @field_validator('title', 'reason', mode='before')
    @classmethod
    def none_to_empty(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @field_validator('confidence', mode='before')
    @classmethod
    def coerce_confidence(cls, v):
        return Confidence.coerce(v)


@dataclass
class ScanResult:
    books: List[BookCandidate] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)
    sections_scanned: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'books': [b.to_dict() for b in self.books],
            'stats': dict(self.stats),
            'sections_scanned': self.sections_scanned,
        }
