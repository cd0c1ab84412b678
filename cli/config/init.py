"""
shelf config init - write a default config.yaml.
"""

import sys

from infra.config import Config, LibraryConfig, LibraryConfigManager
from pipeline.scan import parse_grid


def cmd_init(args):
    storage_root = Config.book_storage_root
    manager = LibraryConfigManager(storage_root)

    if manager.exists() and not args.force:
        print(f"✗ Config already exists at: {manager.config_path}")
        print("  Use --force to overwrite")
        return

    config = LibraryConfig.with_defaults()
    if args.grid:
        try:
            config.scan.sections_x, config.scan.sections_y = parse_grid(args.grid)
        except ValueError as e:
            print(f"✗ {e}")
            sys.exit(1)

    manager.save(config)
    print(f"✓ Created config at: {manager.config_path}")

    detection = config.get_llm_provider(config.defaults.detection_provider)
    validation = config.get_llm_provider(config.defaults.validation_provider)
    print(f"\n  Storage root: {storage_root}")
    print(f"  Detection:    {config.defaults.detection_provider} ({detection.model})")
    print(f"  Validation:   {config.defaults.validation_provider} ({validation.model})")
    print(f"  Grid:         {config.scan.sections_x}x{config.scan.sections_y}")

    if config.provider_api_key(config.defaults.detection_provider):
        print("\n✓ OpenRouter API key found")
    else:
        print("\n○ OpenRouter API key not set: export OPENROUTER_API_KEY or add it to .env")
