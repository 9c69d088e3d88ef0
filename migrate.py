#!/usr/bin/env python3
"""
JSPWiki Migration Tool - Main CLI Entry Point

This script provides the command-line interface for migrating the pages and
attachments of one JSPWiki language edition into Markdown (or back), page by
page, with per-page failure isolation and a summary report.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

import yaml

from config_loader import ConfigLoader
from errors import MigrationError
from logger import log_config, log_section, setup_logging
from orchestrator import MigrationRunner

# Version
__version__ = "1.0.0"

DIALECT_LABELS = {'jspwiki': 'JSPWiki', 'markdown': 'Markdown'}


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='jspwiki-migrate',
        description="Migrate a JSPWiki page directory from one markup dialect to another",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert the German edition to Markdown
  jspwiki-migrate wiki/de markdown/de de

  # Start from an empty target directory
  jspwiki-migrate wiki/de markdown/de de --clean-target

  # Preview without writing anything
  jspwiki-migrate wiki/de markdown/de de --dry-run -v

  # Settings from a YAML file, JSON report next to it
  jspwiki-migrate wiki/pt_BR markdown/pt_BR pt_BR --config config.yaml --report report.json
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument('source_dir', nargs='?', help='JSPWiki page directory to read from')
    parser.add_argument('target_dir', nargs='?', help='Page directory to write to')
    parser.add_argument('language', nargs='?', help='Language code of the edition (e.g. de, en, pt_BR)')

    parser.add_argument(
        '--config',
        type=str,
        help='Path to configuration YAML file (optional)'
    )

    parser.add_argument(
        '--source-dialect',
        type=str,
        help='Markup dialect of the source pages (default: jspwiki)'
    )

    parser.add_argument(
        '--target-dialect',
        type=str,
        help='Markup dialect of the target pages (default: markdown)'
    )

    parser.add_argument(
        '--work-dir',
        type=str,
        help='Scratch root for engine work directories and logs (default: ./target)'
    )

    parser.add_argument(
        '--parser',
        type=str,
        help='Renderer class overriding the source dialect parser (package.module.Class)'
    )

    parser.add_argument(
        '--clean-target',
        action='store_true',
        help='Delete existing target directory content before the run'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Render and translate without writing anything'
    )

    parser.add_argument(
        '--no-verify',
        action='store_true',
        help='Skip attachment checksum verification'
    )

    parser.add_argument(
        '--report',
        type=str,
        help='Write the JSON migration report to this file'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also log to this rotating log file'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def display_path(path: str) -> str:
    """Absolute form of a directory argument, as the engines resolve it."""
    return os.path.abspath(os.path.expanduser(path))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not (args.source_dir and args.target_dir and args.language):
        parser.print_usage()
        return 1

    try:
        # Load configuration
        config = ConfigLoader.load(args.config)

        # Merge with CLI arguments (CLI takes precedence)
        config = ConfigLoader.merge_with_args(config, args)

        # Validate configuration
        ConfigLoader.validate(config)

        logging_config = config.get('logging', {})
        setup_logging(
            verbosity=logging_config.get('verbosity', 0),
            log_file=logging_config.get('file'),
            level=logging_config.get('level')
        )
        logger = logging.getLogger('jspwiki_migrator.cli')

        log_section("JSPWiki Migration Tool")
        logger.info(f"Version: {__version__}")
        if args.config:
            logger.info(f"Loaded configuration from {args.config}")
        log_config(config)

        migration = config['migration']
        print(f"Source directory: {display_path(migration['source_directory'])}")
        print(f"Target directory: {display_path(migration['target_directory'])}")

        MigrationRunner(config).run()

    except MigrationError as e:
        print(f"Error processing: {e.message}", file=sys.stderr)
        return 2
    except FileNotFoundError as e:
        print(f"Error processing: {e}", file=sys.stderr)
        return 2
    except (ValueError, yaml.YAMLError) as e:
        print(f"Error processing: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nMigration interrupted by user", file=sys.stderr)
        return 130

    source = DIALECT_LABELS.get(migration['source_dialect'], migration['source_dialect'])
    target = DIALECT_LABELS.get(migration['target_dialect'], migration['target_dialect'])
    print(f"Successfully converted {source} to {target} for language: {migration['language']}")
    print("Conversion process completed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
