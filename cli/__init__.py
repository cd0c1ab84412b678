import argparse
import cli.config
import cli.library
import cli.scan


def create_parser():
    parser = argparse.ArgumentParser(
        prog='shelf',
        description='Shelf - Turn photos of bookshelves into a book library',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Configuration (run first!)
  shelf config init                       # Initialize library config
  shelf config show                       # Show current config
  shelf config show --json

  # Scanning
  shelf scan ~/Pictures/shelf.jpg
  shelf scan ~/Pictures/shelves/*.jpg --grid 4x3
  shelf scan shelf.jpg --grid 2x2 --crop-sections --cooldown 0
  shelf plan --grid 4x3                   # Preview section layout

  # Library
  shelf library list
  shelf library list --books --json
  shelf library show scan-20250101-120000-abc123
"""
    )

    subparsers = parser.add_subparsers(dest='command', help='Command namespace')
    subparsers.required = True

    cli.config.setup_parser(subparsers)
    cli.library.setup_parser(subparsers)
    cli.scan.setup_parser(subparsers)

    return parser


def main(argv=None):
    parser = create_parser()
    args = parser.parse_args(argv)
    args.func(args)
