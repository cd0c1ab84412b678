"""
Config CLI commands.

    shelf config init [--force] [--grid 4x3]
    shelf config show [--json] [--reveal-keys]
    shelf config provider NAME MODEL [--rate-limit RPS] [--use-for detection|validation]
"""

from cli.config.init import cmd_init
from cli.config.provider import cmd_provider
from cli.config.show import cmd_config_show


def setup_parser(subparsers):
    config_parser = subparsers.add_parser('config', help='Manage {storage_root}/config.yaml')
    config_subparsers = config_parser.add_subparsers(dest='config_command', help='Config command')
    config_subparsers.required = True

    init_parser = config_subparsers.add_parser('init', help='Write a default config')
    init_parser.add_argument('--force', action='store_true', help='Overwrite an existing config')
    init_parser.add_argument('--grid', help='Default section grid as COLSxROWS (default: 1x1)')
    init_parser.set_defaults(func=cmd_init)

    show_parser = config_subparsers.add_parser('show', help='Show the current config')
    show_parser.add_argument('--json', action='store_true', help='Output as JSON')
    show_parser.add_argument('--reveal-keys', action='store_true', help='Show API key values (default: masked)')
    show_parser.set_defaults(func=cmd_config_show)

    provider_parser = config_subparsers.add_parser('provider', help='Add or replace a model provider')
    provider_parser.add_argument('name', help='Provider name, e.g. claude')
    provider_parser.add_argument('model', help='OpenRouter model id, e.g. anthropic/claude-sonnet-4')
    provider_parser.add_argument('--type', default='openrouter', help='Provider type (default: openrouter)')
    provider_parser.add_argument('--api-key-ref', help='api_keys entry to authenticate with (default: the type)')
    provider_parser.add_argument('--rate-limit', type=float, help='Requests per second allowed for this provider')
    provider_parser.add_argument(
        '--use-for',
        choices=['detection', 'validation'],
        help='Make this the provider for a scan step'
    )
    provider_parser.set_defaults(func=cmd_provider)


__all__ = [
    'setup_parser',
    'cmd_init',
    'cmd_provider',
    'cmd_config_show',
]
