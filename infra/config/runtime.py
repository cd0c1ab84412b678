"""
Runtime configuration access.

Single source of truth: {storage_root}/config.yaml

BOOK_STORAGE_ROOT locates the library. API keys referenced as ${ENV_VAR}
in config.yaml are read from the environment, which is seeded from a
local .env file when one exists.
"""

import os
from pathlib import Path
from functools import lru_cache

from dotenv import load_dotenv

from .schemas import LibraryConfig

load_dotenv()


def get_storage_root() -> Path:
    """Get the library storage root from environment."""
    return Path(os.getenv('BOOK_STORAGE_ROOT', '~/Documents/shelf')).expanduser().resolve()


@lru_cache(maxsize=1)
def get_library_config() -> LibraryConfig:
    """
    Load and cache the library configuration.

    Returns LibraryConfig with defaults if config.yaml doesn't exist.
    """
    from .library_config import load_library_config
    return load_library_config(get_storage_root())


def get_api_key(name: str) -> str:
    """
    Get an API key by name, resolving ${ENV_VAR} references.

    Args:
        name: Key name (e.g., "openrouter")

    Returns:
        Resolved API key value, or empty string if not found
    """
    config = get_library_config()
    return config.resolve_api_key(name) or ""


class _ConfigCompat:
    """
    Attribute-style access to runtime config values.
    """

    @property
    def book_storage_root(self) -> Path:
        return get_storage_root()

    @property
    def openrouter_api_key(self) -> str:
        return get_api_key("openrouter")

    @property
    def openrouter_site_url(self) -> str:
        return os.getenv('OPENROUTER_SITE_URL', 'https://github.com/shelf-scan')

    @property
    def openrouter_site_name(self) -> str:
        return os.getenv('OPENROUTER_SITE_NAME', 'Shelf Scan')


Config = _ConfigCompat()
