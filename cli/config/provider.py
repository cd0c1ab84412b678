"""
shelf config provider - register a model provider.
"""

import sys

from infra.config import Config, LibraryConfigManager


def cmd_provider(args):
    manager = LibraryConfigManager(Config.book_storage_root)

    try:
        config = manager.add_llm_provider(
            args.name,
            args.type,
            args.model,
            api_key_ref=args.api_key_ref,
            rate_limit=args.rate_limit,
            use_for=args.use_for,
        )
    except ValueError as e:
        print(f"✗ {e}")
        sys.exit(1)

    print(f"✓ Provider '{args.name}': {args.type} ({args.model})")
    if args.use_for:
        print(f"  Used for {args.use_for}")
    if args.rate_limit:
        print(f"  Rate limit: {args.rate_limit} requests/second")

    key_name = args.api_key_ref or args.type
    if key_name not in config.api_keys:
        print(f"⚠️  No api_keys entry '{key_name}' yet")
