#!/usr/bin/env python3
"""
Command-line interface for Quire - site configuration inspector.
"""

import os
import sys
import json
import locale
import logging
import argparse
from typing import List, Optional

import yaml

from . import __version__
from .config import ConfigurationError
from .core import Quire
from .settings import QuireSettings

SAMPLE_CONFIG_MODULE = '''"""Site configuration for Quire."""

from quire_pkg.filters import readable_date
from quire_pkg.plugins import syntax_highlight


def configure(config):
    config.set_template_formats(["md", "html", "css", "njk"])

    config.set_data_deep_merge(True)

    config.add_filter("readableDate", readable_date)

    config.add_plugin(syntax_highlight)
'''


def create_config_module(config_dir: str) -> Optional[str]:
    """Write a sample quire_config.py unless one already exists."""
    module_path = os.path.join(config_dir, 'quire_config.py')
    if os.path.exists(module_path):
        print("Configuration module already exists: quire_config.py")
        return None

    with open(module_path, 'w', encoding='utf-8') as f:
        f.write(SAMPLE_CONFIG_MODULE)
    print("Created configuration module: quire_config.py")
    return module_path


def dump(data, output_format: str) -> str:
    if output_format == 'json':
        return json.dumps(data, indent=2, default=str)
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip('\n')


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description='Quire - Site Configuration')
    parser.add_argument('--config-dir', type=str,
                        help='Directory containing quire.yml and quire_config.py')
    parser.add_argument('--template-formats', type=str,
                        help='Comma-separated list of template file extensions')
    parser.add_argument('--deep-merge', dest='data_deep_merge', action='store_const', const=True,
                        help='Deep-merge template data')
    parser.add_argument('--no-deep-merge', dest='data_deep_merge', action='store_const', const=False,
                        help='Shallow-merge template data')
    parser.add_argument('--plugins', type=str,
                        help='Comma-separated list of built-in plugins to register')
    parser.add_argument('--locale', type=str,
                        help='Locale used for date formatting')
    parser.add_argument('--format', dest='output_format', choices=['yaml', 'json'], default='yaml',
                        help='Output format')
    parser.add_argument('--check', nargs='+', metavar='PATH',
                        help='Report whether each path is processed as a template')
    parser.add_argument('--merge-data', nargs='+', metavar='FILE',
                        help='Merge YAML/JSON data files, lowest priority first')
    parser.add_argument('--log-dir', type=str,
                        help='Directory for debug log files')
    parser.add_argument('--verbose', action='store_true',
                        help='Show debug output')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and module')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    args = parser.parse_args(argv)
    config_dir = args.config_dir or os.getcwd()

    # Handle init command
    if args.init:
        try:
            settings_loader = QuireSettings(config_dir)
            config_path = settings_loader.create_sample_config(args.init)
            print(f"Created sample configuration file: {config_path}")
            create_config_module(config_dir)
        except (IOError, OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        return

    try:
        locale.setlocale(locale.LC_TIME, '')
    except locale.Error as e:
        logging.getLogger('Quire').debug(f"Keeping default locale: {e}")

    overrides = {
        'template_formats': args.template_formats,
        'data_deep_merge': args.data_deep_merge,
        'plugins': args.plugins,
        'locale': args.locale,
    }

    try:
        quire = Quire(
            config_dir=config_dir,
            settings={k: v for k, v in overrides.items() if v is not None},
            log_dir=args.log_dir,
            verbose=args.verbose
        )

        if args.check:
            results = {path: quire.is_template(path) for path in args.check}
            print(dump(results, args.output_format))
        elif args.merge_data:
            scopes = [quire.load_data_file(path) for path in args.merge_data]
            print(dump(quire.merge_data(*scopes), args.output_format))
        else:
            print(dump(quire.config.as_dict(), args.output_format))

    except (ConfigurationError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
