"""Storage subsystem: ScanLibrary"""

from infra.storage.library import ScanLibrary

__all__ = [
    "ScanLibrary",
]
