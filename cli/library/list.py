import json

from rich.console import Console
from rich.table import Table

from infra.config import Config
from infra.storage import ScanLibrary


def cmd_list(args):
    library = ScanLibrary(storage_root=Config.book_storage_root)
    scans = library.list_scans()

    if not scans:
        print("No scans in library. Use 'shelf scan <image>' to add some.")
        return

    if args.json:
        data = library.list_books() if args.books else scans
        print(json.dumps(data, indent=2))
        return

    console = Console()

    if args.books:
        books = library.list_books()
        table = Table(title=f"Library ({len(books)} books)")
        table.add_column("Title", style="bold")
        table.add_column("Author")
        table.add_column("Confidence", style="cyan")
        table.add_column("Scan ID", style="dim")
        for book in books:
            table.add_row(
                book.get('title', ''),
                book.get('author', 'Unknown'),
                book.get('confidence', ''),
                book['scan_id'],
            )
        console.print(table)
        return

    table = Table(title=f"Library ({len(scans)} scans)")
    table.add_column("Scan ID", style="cyan")
    table.add_column("Image")
    table.add_column("Scanned")
    table.add_column("Books", justify="right")

    for scan in scans:
        table.add_row(
            scan['scan_id'],
            scan.get('image_ref', ''),
            (scan.get('scanned_at') or '')[:19],
            str(len(scan.get('books', []))),
        )

    console.print(table)
    stats = library.get_stats()
    print(f"\n{stats['total_books']} books across {stats['total_scans']} scans")
