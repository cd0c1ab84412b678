"""
Configuration management for Shelf.

Library config lives at {storage_root}/config.yaml.

Usage:
    from infra.config import LibraryConfigManager

    manager = LibraryConfigManager(storage_root)
    config = manager.load()
    policy = config.scan.policy

Attribute access for runtime values:
    from infra.config import Config
    api_key = Config.openrouter_api_key
"""

from .schemas import (
    LLMProviderConfig,
    DefaultsConfig,
    ScanPolicy,
    ScanConfig,
    LibraryConfig,
    resolve_env_vars,
)

from .library_config import (
    LibraryConfigManager,
    load_library_config,
)

from .runtime import (
    Config,
    get_storage_root,
    get_library_config,
    get_api_key,
)


__all__ = [
    "Config",
    # Schemas
    "LLMProviderConfig",
    "DefaultsConfig",
    "ScanPolicy",
    "ScanConfig",
    "LibraryConfig",
    "resolve_env_vars",
    # Library config
    "LibraryConfigManager",
    "load_library_config",
    # Runtime
    "get_storage_root",
    "get_library_config",
    "get_api_key",
]
