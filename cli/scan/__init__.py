"""
Scan CLI commands.

Commands for scanning shelf photos and previewing section plans.
"""

from cli.scan.run import cmd_scan
from cli.scan.plan import cmd_plan


def setup_parser(subparsers):
    """Setup scan and plan command parsers."""
    # shelf scan <image...>
    scan_parser = subparsers.add_parser(
        'scan',
        help='Scan bookshelf photo(s) and add the books to the library'
    )
    scan_parser.add_argument(
        'image_patterns',
        nargs='+',
        help='Image file(s) or glob pattern(s)'
    )
    scan_parser.add_argument(
        '--grid',
        help='Section grid as COLSxROWS, e.g. 4x3 (default: scan.sections_x x scan.sections_y)'
    )
    scan_parser.add_argument(
        '--crop-sections',
        action='store_true',
        help='Send each section as a crop instead of the whole photo'
    )
    scan_parser.add_argument(
        '--cooldown',
        type=float,
        help='Seconds to pause between images (default: scan.cooldown_seconds)'
    )
    scan_parser.add_argument(
        '--json',
        action='store_true',
        help='Output results as JSON'
    )
    scan_parser.set_defaults(func=cmd_scan)

    # shelf plan --grid 4x3
    plan_parser = subparsers.add_parser(
        'plan',
        help='Show how a photo would be split into sections'
    )
    plan_parser.add_argument(
        '--grid',
        default='4x3',
        help='Section grid as COLSxROWS (default: 4x3)'
    )
    plan_parser.add_argument(
        '--json',
        action='store_true',
        help='Output as JSON'
    )
    plan_parser.set_defaults(func=cmd_plan)


__all__ = ['setup_parser', 'cmd_scan', 'cmd_plan']
