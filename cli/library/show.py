import json
import sys

from rich.console import Console
from rich.table import Table

from infra.config import Config
from infra.storage import ScanLibrary


def cmd_show(args):
    library = ScanLibrary(storage_root=Config.book_storage_root)
    scan = library.get_scan(args.scan_id)

    if not scan:
        print(f"✗ Scan not found: {args.scan_id}")
        sys.exit(1)

    if args.json:
        print(json.dumps(scan, indent=2))
        return

    table = Table(title=f"{scan['scan_id']} - {scan.get('image_ref', '')}")
    table.add_column("#", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Confidence", style="cyan")
    table.add_column("Note", style="dim")

    for i, book in enumerate(scan.get('books', []), 1):
        table.add_row(
            str(i),
            book.get('title', ''),
            book.get('author', 'Unknown'),
            book.get('confidence', ''),
            book.get('note') or '',
        )

    Console().print(table)
