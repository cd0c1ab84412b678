"""JSON-file library of completed shelf scans."""

import json
import os
import threading
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any, List, Iterable

from infra.config import Config


class ScanLibrary:
    """
    Stores each completed scan as one record in {storage_root}/library.json:

        {"version": "1.0", "scans": [{scan_id, image_ref, scanned_at, books: [...]}]}

    Every write replaces the whole file atomically.
    """
    LIBRARY_VERSION = "1.0"
    LIBRARY_FILENAME = "library.json"

    def __init__(self, storage_root: Optional[Path] = None):
        self.storage_root = Path(storage_root or Config.book_storage_root)
        self.storage_root.mkdir(parents=True, exist_ok=True)

        self._library_file = self.storage_root / self.LIBRARY_FILENAME
        self._lock = threading.Lock()
        self._state = self._load_or_create()

    @property
    def library_file(self) -> Path:
        return self._library_file

    def _load_or_create(self) -> Dict[str, Any]:
        if not self._library_file.exists():
            return self._create_new()

        with open(self._library_file, 'r') as f:
            state = json.load(f)

        if not isinstance(state, dict) or not isinstance(state.get('scans'), list):
            raise ValueError(f"Unrecognised library file: {self._library_file}")

        return state

    def _create_new(self) -> Dict[str, Any]:
        return {
            "version": self.LIBRARY_VERSION,
            "scans": [],
        }

    def _save(self):
        self._library_file.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(
            dir=self._library_file.parent,
            prefix=f"{self.LIBRARY_FILENAME}.tmp"
        )

        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(self._state, f, indent=2)

            os.replace(temp_path, self._library_file)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    @staticmethod
    def _book_to_dict(book) -> Dict[str, Any]:
        if hasattr(book, 'to_dict'):
            return book.to_dict()
        return dict(book)

    def add_scan(self, scan_id: str, image_ref: str, books: Iterable) -> Dict[str, Any]:
        record = {
            "scan_id": scan_id,
            "image_ref": str(image_ref),
            "scanned_at": datetime.now().isoformat(),
            "books": [self._book_to_dict(b) for b in books],
        }

        with self._lock:
            previous = self._state['scans']
            self._state['scans'] = previous + [record]
            try:
                self._save()
            except Exception:
                self._state['scans'] = previous
                raise

        return record

    def list_scans(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(scan) for scan in self._state['scans']]

    def get_scan(self, scan_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            for scan in self._state['scans']:
                if scan.get('scan_id') == scan_id:
                    return dict(scan)
        return None

    def list_books(self) -> List[Dict[str, Any]]:
        books = []
        for scan in self.list_scans():
            for book in scan.get('books', []):
                books.append({**book, "scan_id": scan['scan_id']})
        return books

    def get_stats(self) -> Dict[str, Any]:
        scans = self.list_scans()
        return {
            "total_scans": len(scans),
            "total_books": sum(len(s.get('books', [])) for s in scans),
        }
