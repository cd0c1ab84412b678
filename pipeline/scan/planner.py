"""
Section planning for multi-pass shelf scans.

The image is split into a sections_x by sections_y grid. Cells after the
first row/column are pulled back by 10% of a cell so spines on a border
land in two sections. Cells near the center get a higher priority and a
slightly larger footprint, and are scanned first.
"""

import math
import re
from typing import List, Tuple

from .schemas import RegionDescriptor, WHOLE_IMAGE

OVERLAP_FRACTION = 0.10

_GRID_RE = re.compile(r'^\s*(\d+)\s*[xX×]\s*(\d+)\s*$')


def plan_sections(sections_x: int, sections_y: int) -> List[RegionDescriptor]:
    """Return the grid's regions, highest priority first."""
    if sections_x < 1 or sections_y < 1:
        raise ValueError(f"Grid must be at least 1x1, got {sections_x}x{sections_y}")

    if sections_x == 1 and sections_y == 1:
        return [WHOLE_IMAGE]

    cell_width = 100.0 / sections_x
    cell_height = 100.0 / sections_y

    center_x = sections_x / 2
    center_y = sections_y / 2
    max_distance = math.hypot(center_x, center_y)

    sections = []
    for row in range(sections_y):
        for col in range(sections_x):
            x_overlap = OVERLAP_FRACTION * cell_width if col > 0 else 0.0
            y_overlap = OVERLAP_FRACTION * cell_height if row > 0 else 0.0

            distance = math.hypot(col - center_x, row - center_y)
            priority = 1 - distance / max_distance
            priority = min(1.0, max(0.0, priority))

            size_multiplier = 0.8 + 0.4 * priority

            sections.append(RegionDescriptor(
                x=_clamp(col * cell_width - x_overlap),
                y=_clamp(row * cell_height - y_overlap),
                width=_clamp(cell_width * size_multiplier + x_overlap),
                height=_clamp(cell_height * size_multiplier + y_overlap),
                row=row,
                col=col,
                priority=priority,
            ))

    # sorted() is stable, so equal priorities keep row-major order
    return sorted(sections, key=lambda s: s.priority, reverse=True)


def parse_grid(value: str) -> Tuple[int, int]:
    """Parse "4x3" into (4, 3): columns first, then rows."""
    match = _GRID_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid grid '{value}' (expected COLSxROWS, e.g. 4x3)")

    sections_x, sections_y = int(match.group(1)), int(match.group(2))
    if sections_x < 1 or sections_y < 1:
        raise ValueError(f"Grid must be at least 1x1, got {value}")

    return sections_x, sections_y


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, value))
