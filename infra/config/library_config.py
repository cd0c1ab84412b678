"""
Reading and writing {storage_root}/config.yaml.

The file holds API key references, the model providers used for detection
and validation, and the scan settings (grid, pacing, heuristic policy).
A missing file means defaults; a file that fails validation raises.
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .schemas import LibraryConfig, LLMProviderConfig


CONFIG_FILENAME = "config.yaml"

PROVIDER_STEPS = ("detection", "validation")


class LibraryConfigManager:
    """
    Load, edit and persist the library config.

        manager = LibraryConfigManager(storage_root)
        config = manager.load()
        manager.update({"scan": {"sections_x": 4, "sections_y": 3}})
    """

    def __init__(self, storage_root: Path):
        self.storage_root = Path(storage_root).expanduser().resolve()
        self.config_path = self.storage_root / CONFIG_FILENAME

    def exists(self) -> bool:
        return self.config_path.exists()

    def load(self) -> LibraryConfig:
        if not self.config_path.exists():
            return LibraryConfig.with_defaults()

        with open(self.config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"{self.config_path} must contain a YAML mapping, got {type(data).__name__}")

        return LibraryConfig.model_validate(data)

    def save(self, config: LibraryConfig) -> None:
        """Write the config atomically (temp file + rename)."""
        self.storage_root.mkdir(parents=True, exist_ok=True)
        data = config.model_dump(exclude_none=True)

        fd, tmp_path = tempfile.mkstemp(dir=self.storage_root, prefix=".config-", suffix=".yaml")
        try:
            with os.fdopen(fd, "w") as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False)
            os.replace(tmp_path, self.config_path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def update(self, updates: Dict[str, Any]) -> LibraryConfig:
        """
        Merge nested `updates` into the stored config and save it.

        The merged result is validated before anything is written, so an
        invalid value leaves the file untouched.
        """
        data = self.load().model_dump()
        _deep_merge(data, updates)

        config = LibraryConfig.model_validate(data)
        self.save(config)
        return config

    def set_api_key(self, key_name: str, value: str) -> None:
        """Store a key; use "${ENV_VAR}" to keep the secret out of the file."""
        config = self.load()
        config.api_keys[key_name] = value
        self.save(config)

    def add_llm_provider(
        self,
        name: str,
        provider_type: str,
        model: str,
        api_key_ref: Optional[str] = None,
        rate_limit: Optional[float] = None,
        use_for: Optional[str] = None,
    ) -> LibraryConfig:
        """
        Register a provider, optionally selecting it for one scan step
        ("detection" or "validation").
        """
        if use_for is not None and use_for not in PROVIDER_STEPS:
            raise ValueError(f"use_for must be one of {PROVIDER_STEPS}, got {use_for!r}")

        config = self.load()
        config.llm_providers[name] = LLMProviderConfig(
            type=provider_type,
            model=model,
            api_key_ref=api_key_ref,
            rate_limit=rate_limit,
        )
        if use_for is not None:
            setattr(config.defaults, f"{use_for}_provider", name)

        self.save(config)
        return config


def _deep_merge(base: dict, updates: dict) -> None:
    for key, value in updates.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def load_library_config(storage_root: Path) -> LibraryConfig:
    return LibraryConfigManager(storage_root).load()
