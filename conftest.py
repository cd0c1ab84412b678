"""
Root pytest configuration.

Puts the repository root on sys.path so `infra`, `pipeline` and `cli`
import without installing the package.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))
