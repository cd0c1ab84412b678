"""
shelf config show - print the library config with API keys masked.
"""

import json

from rich.console import Console
from rich.table import Table

from infra.config import Config, LibraryConfigManager


def cmd_config_show(args):
    manager = LibraryConfigManager(Config.book_storage_root)

    if not manager.exists():
        print(f"✗ No config found at: {manager.config_path}")
        print("  Run 'shelf config init' to create one")
        return

    config = manager.load()
    keys = {
        name: (config.resolve_api_key(name) or "(not set)") if args.reveal_keys else _mask_key(config.resolve_api_key(name))
        for name in config.api_keys
    }

    if args.json:
        data = config.model_dump()
        data['api_keys'] = keys
        print(json.dumps(data, indent=2, default=str))
        return

    console = Console()
    console.print(f"[bold]{manager.config_path}[/bold]\n")

    providers = Table(title="Providers")
    providers.add_column("Name", style="cyan")
    providers.add_column("Type")
    providers.add_column("Model")
    providers.add_column("Used for")
    for name, provider in config.llm_providers.items():
        steps = [
            step for step, selected in (
                ("detection", config.defaults.detection_provider),
                ("validation", config.defaults.validation_provider),
            )
            if selected == name
        ]
        providers.add_row(name, provider.type, provider.model, ", ".join(steps))
    console.print(providers)

    scan = config.scan
    settings = Table(title="Scan settings", show_header=False)
    settings.add_column("Setting", style="cyan")
    settings.add_column("Value")
    settings.add_row("grid", f"{scan.sections_x}x{scan.sections_y}")
    for field in ("crop_sections", "cooldown_seconds", "validation_delay_seconds", "max_image_edge", "max_retries"):
        settings.add_row(field, str(getattr(scan, field)))
    settings.add_row("title_similarity_threshold", str(scan.policy.title_similarity_threshold))
    settings.add_row("deny_author_patterns", ", ".join(scan.policy.deny_author_patterns))
    console.print(settings)

    console.print("\nAPI keys:")
    for name, display in keys.items():
        console.print(f"  {name}: {display}")


def _mask_key(value: str) -> str:
    if not value:
        return "(not set)"
    if len(value) <= 8:
        return "****"
    return value[:4] + "..." + value[-4:]
