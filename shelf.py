#!/usr/bin/env python3
"""
Shelf CLI - Turn photos of bookshelves into a book library

Commands:
  Scanning:
    shelf scan <image...>        Scan shelf photo(s) into the library
    shelf plan --grid 4x3        Preview how a photo is split into sections

  Library:
    shelf library list           List stored scans
    shelf library show <id>      Show the books from one scan

  Configuration:
    shelf config init            Create {storage_root}/config.yaml
    shelf config show            Show current configuration
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from cli import main


if __name__ == '__main__':
    main()
