"""
Configuration schemas for Shelf.

Defines the structure of the library configuration file.
All config is stored in ~/Documents/shelf/ (or BOOK_STORAGE_ROOT).
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator
import os
import re


class LLMProviderConfig(BaseModel):
    """Configuration for an LLM provider (inference endpoint + model)."""
    type: str = Field(..., description="Provider type: openrouter")
    model: str = Field(..., description="Model identifier (e.g., google/gemini-2.0-flash-001)")
    api_key_ref: Optional[str] = Field(None, description="Reference to api_keys entry (defaults to type)")
    rate_limit: Optional[float] = Field(
        None, gt=0,
        description="Requests per second; every scan step using this provider is paced to it"
    )


class DefaultsConfig(BaseModel):
    """Which providers each remote step uses."""
    detection_provider: str = Field(
        default="gemini-flash",
        description="LLM provider used to read book spines from shelf photos"
    )
    validation_provider: str = Field(
        default="gemini-flash",
        description="LLM provider used to re-check ambiguous detections"
    )


class ScanPolicy(BaseModel):
    """
    Heuristic policy for cleaning and merging detected books.

    The thresholds were tuned by hand on a small set of shelf photos,
    so they live in config rather than in code.
    """
    title_similarity_threshold: float = Field(
        default=0.70, ge=0.0, le=1.0,
        description="Word-overlap score at which two titles count as the same book"
    )
    max_word_count_gap: int = Field(
        default=2, ge=0,
        description="Titles whose word counts differ by more than this are never fuzzy-matched"
    )
    partial_word_min_length: int = Field(
        default=3, ge=0,
        description="Words must be longer than this to earn partial (substring) credit"
    )
    substring_min_length: int = Field(
        default=2, ge=0,
        description="A contained title must be longer than this to count as a duplicate"
    )
    author_similarity_threshold: float = Field(
        default=0.50, ge=0.0, le=1.0,
        description="Loose title score above which same-author books are merged"
    )
    swap_length_margin: int = Field(
        default=5, ge=0,
        description="How much longer a non-name title must be than a name-shaped author before the two are swapped"
    )
    deny_author_patterns: List[str] = Field(
        default_factory=lambda: [
            "john doe",
            "jane doe",
            "duel without end",
            "according to queeneys",
            "controlling",
            "owmen",
        ],
        description="Author substrings that mark a detection as garbage"
    )
    publisher_prefixes: List[str] = Field(
        default_factory=lambda: [
            "Penguin",
            "Random House",
            "HarperCollins",
            "Simon & Schuster",
            "Macmillan",
            "Hachette",
            "Scholastic",
            "Disney",
            "Marvel",
            "DC Comics",
        ],
        description="Publisher names stripped from the front of titles"
    )
    author_suffixes: List[str] = Field(
        default_factory=lambda: ["Jr.", "Sr.", "III", "IV", "V"],
        description="Honorifics stripped from the end of author names"
    )
    ocr_fixes: Dict[str, str] = Field(
        default_factory=lambda: {"owmen": "women", "|": ""},
        description="Known OCR misreads (substring -> replacement)"
    )
    function_words: List[str] = Field(
        default_factory=lambda: [
            "the", "of", "and", "in", "on", "at", "for", "with",
            "a", "an", "how", "why", "what", "when", "where",
        ],
        description="Words that appear in titles but not in person names"
    )

    @field_validator('deny_author_patterns', 'function_words')
    @classmethod
    def lowercase_patterns(cls, v: List[str]) -> List[str]:
        return [p.strip().lower() for p in v if p and p.strip()]


class ScanConfig(BaseModel):
    """Settings for the scan pipeline and queue."""
    sections_x: int = Field(default=1, ge=1, description="Grid columns per image")
    sections_y: int = Field(default=1, ge=1, description="Grid rows per image")
    crop_sections: bool = Field(
        default=False,
        description="Crop each section before sending (default sends the whole photo with position hints)"
    )
    max_image_edge: int = Field(default=2048, ge=64, description="Longest image edge sent to the model")
    cooldown_seconds: float = Field(default=1.0, ge=0.0, description="Pause between queued jobs")
    validation_delay_seconds: float = Field(
        default=0.05, ge=0.0,
        description="Minimum spacing between secondary validation calls"
    )
    detection_max_tokens: int = Field(default=4000, ge=1)
    detection_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    validation_max_tokens: int = Field(default=500, ge=1)
    timeout_seconds: int = Field(default=120, ge=1, description="Per-request HTTP timeout")
    max_retries: int = Field(default=3, ge=1, description="Attempts per remote call")
    policy: ScanPolicy = Field(default_factory=ScanPolicy)


class LibraryConfig(BaseModel):
    """
    Library-level configuration.

    Stored at: {storage_root}/config.yaml
    """
    api_keys: Dict[str, str] = Field(
        default_factory=dict,
        description="API keys (can use ${ENV_VAR} syntax)"
    )
    llm_providers: Dict[str, LLMProviderConfig] = Field(
        default_factory=dict,
        description="LLM provider definitions (inference)"
    )
    defaults: DefaultsConfig = Field(
        default_factory=DefaultsConfig,
        description="Provider selection"
    )
    scan: ScanConfig = Field(
        default_factory=ScanConfig,
        description="Scan pipeline settings"
    )

    def resolve_api_key(self, key_name: str) -> Optional[str]:
        """
        Resolve an API key, expanding ${ENV_VAR} references.

        Returns None if key not found or env var not set.
        """
        if key_name not in self.api_keys:
            return None

        value = resolve_env_vars(self.api_keys[key_name])
        return value or None

    def get_llm_provider(self, name: str) -> Optional[LLMProviderConfig]:
        """Get an LLM provider config by name."""
        return self.llm_providers.get(name)

    def provider_api_key(self, name: str) -> Optional[str]:
        """Resolve the API key a named provider authenticates with."""
        provider = self.get_llm_provider(name)
        if provider is None:
            return None
        return self.resolve_api_key(provider.api_key_ref or provider.type)

    @classmethod
    def with_defaults(cls) -> "LibraryConfig":
        """Create a config with sensible defaults."""
        return cls(
            api_keys={
                "openrouter": "${OPENROUTER_API_KEY}",
            },
            llm_providers={
                "gemini-flash": LLMProviderConfig(
                    type="openrouter",
                    model="google/gemini-2.0-flash-001",
                ),
                "gpt-4o": LLMProviderConfig(
                    type="openrouter",
                    model="openai/gpt-4o",
                ),
            },
            defaults=DefaultsConfig(),
            scan=ScanConfig(),
        )


def resolve_env_vars(value: str) -> str:
    """
    Resolve ${ENV_VAR} references in a string.

    Examples:
        "${OPENROUTER_API_KEY}" -> actual value from environment
        "literal-value" -> "literal-value"
        "${MISSING_VAR}" -> "" (empty string if not set)
    """
    if not isinstance(value, str):
        return value

    # Pattern matches ${VAR_NAME}
    pattern = r'\$\{([^}]+)\}'

    def replace(match):
        var_name = match.group(1)
        return os.environ.get(var_name, "")

    return re.sub(pattern, replace, value)
