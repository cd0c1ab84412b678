from cli.library.list import cmd_list
from cli.library.show import cmd_show


def setup_parser(subparsers):
    """Setup library command parser."""
    library_parser = subparsers.add_parser('library', help='Library commands')
    library_subparsers = library_parser.add_subparsers(dest='library_command', help='Library command')
    library_subparsers.required = True

    list_parser = library_subparsers.add_parser('list', help='List stored scans')
    list_parser.add_argument('--json', action='store_true', help='Output as JSON')
    list_parser.add_argument('--books', action='store_true', help='List every book instead of one row per scan')
    list_parser.set_defaults(func=cmd_list)

    show_parser = library_subparsers.add_parser('show', help='Show the books found by one scan')
    show_parser.add_argument('scan_id', help='Scan ID')
    show_parser.add_argument('--json', action='store_true', help='Output as JSON')
    show_parser.set_defaults(func=cmd_show)


__all__ = ['cmd_list', 'cmd_show', 'setup_parser']
