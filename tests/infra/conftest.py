"""
Shared fixtures for infra tests.

All tests use real filesystem operations with temporary directories.
"""

import pytest


@pytest.fixture
def log_dir(tmp_path):
    """Create a temp directory for logs."""
    log_path = tmp_path / "logs"
    log_path.mkdir()
    return log_path


@pytest.fixture
def library_manager(tmp_storage):
    """Create a LibraryConfigManager with temp storage."""
    from infra.config import LibraryConfigManager
    return LibraryConfigManager(tmp_storage)
