"""
Command-line interface for tablesync.

Usage:
    tablesync [options] [source.cfg] target.cfg source_table target_table

Statements go to stdout (or ``--output``); logs and errors go to stderr.
Exit status is 0 on success and 1 on any fatal condition.
"""

import logging
import sys

from tablesync.errors import TableSyncError
from tablesync.utils.logging import setup_logging, shutdown_logging
from tablesync.utils.tracing import initialize_tracing, shutdown_tracing

from .commands import cmd_sync
from .credentials import load_config, parse_option_file, resolve_config
from .parser import create_parser, split_positionals

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the tablesync CLI"""
    parser = create_parser()
    args = split_positionals(parser, parser.parse_args(argv))

    setup_logging(level=args.log_level, log_file=args.log_file, json_format=args.log_json)
    initialize_tracing()

    try:
        cmd_sync(args)
    except (TableSyncError, OSError) as e:
        logger.error(f"ERROR! {e}")
        return 1
    finally:
        shutdown_tracing()
        shutdown_logging()

    return 0


def run() -> None:
    """Console-script wrapper turning the return code into the exit status."""
    sys.exit(main())


__all__ = [
    'main',
    'run',
    'cmd_sync',
    'create_parser',
    'split_positionals',
    'load_config',
    'parse_option_file',
    'resolve_config',
]


if __name__ == '__main__':
    run()
