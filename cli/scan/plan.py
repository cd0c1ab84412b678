"""
shelf plan command - Preview the section plan for a grid.
"""

import json
import sys
from dataclasses import asdict

from rich.console import Console
from rich.table import Table

from pipeline.scan import plan_sections, parse_grid


def cmd_plan(args):
    try:
        sections_x, sections_y = parse_grid(args.grid)
    except ValueError as e:
        print(f"✗ {e}")
        sys.exit(1)

    sections = plan_sections(sections_x, sections_y)

    if args.json:
        print(json.dumps([asdict(s) for s in sections], indent=2))
        return

    table = Table(title=f"{sections_x}x{sections_y} grid ({len(sections)} sections, scan order)")
    table.add_column("#", justify="right")
    table.add_column("Row", justify="right")
    table.add_column("Col", justify="right")
    table.add_column("Priority", justify="right", style="cyan")
    table.add_column("X %", justify="right")
    table.add_column("Y %", justify="right")
    table.add_column("Width %", justify="right")
    table.add_column("Height %", justify="right")

    for i, s in enumerate(sections, 1):
        table.add_row(
            str(i),
            str(s.row + 1),
            str(s.col + 1),
            f"{s.priority:.2f}",
            f"{s.x:.1f}",
            f"{s.y:.1f}",
            f"{s.width:.1f}",
            f"{s.height:.1f}",
        )

    Console().print(table)
