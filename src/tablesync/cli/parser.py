"""
Command-line argument parser configuration.

Positional arguments follow ``[source.cfg] target.cfg source_table
target_table``: with three positionals both tables are read through one
connection, with four each side gets its own.
"""

import argparse
import sys

from tablesync.sync import STRATEGIES
from tablesync.utils.logging import env_logging_options

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


class SyncArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"ERROR! {message}\n")


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    The --log-* options default to LOG_LEVEL, LOG_FILE and LOG_JSON from the
    environment.

    Returns:
        Configured ArgumentParser instance
    """
    log_defaults = env_logging_options()
    if log_defaults["level"] not in LOG_LEVELS:
        log_defaults["level"] = "INFO"

    parser = SyncArgumentParser(
        prog="tablesync",
        usage="%(prog)s [options] [source.cfg] target.cfg source_table target_table",
        description=(
            "Print the INSERT/UPDATE/DELETE statements that make a target MySQL "
            "table match a source table with the same definition."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Config files are MySQL-style option files with host, user, password and
optionally database and port.

Examples:
  # Both tables on one server: diff runs as join queries on the server
  tablesync prod.cfg shop.orders staging.orders > sync.sql

  # Tables on different servers: target is loaded, source streamed against it
  tablesync primary.cfg replica.cfg shop.orders shop.orders > sync.sql

  # Credentials from Vault (KV v2 paths instead of files)
  tablesync --use-vault secret/mysql/primary secret/mysql/replica orders orders

  # Record a summary and Prometheus metrics alongside the script
  tablesync --summary run.json --metrics-file /var/lib/node_exporter/tablesync.prom \\
      db.cfg shop.orders shop.orders_copy --output sync.sql
        """,
    )

    parser.add_argument(
        "positionals",
        nargs="+",
        metavar="ARG",
        help="[source.cfg] target.cfg source_table target_table",
    )
    parser.add_argument(
        "--strategy",
        choices=STRATEGIES,
        default="auto",
        help=(
            "Diff strategy: 'server' runs join queries on one connection, "
            "'buffered' loads the target into memory (default: auto, server "
            "when only one config is given)"
        ),
    )
    parser.add_argument(
        "--output",
        help="Write statements to this file instead of stdout",
    )
    parser.add_argument(
        "--summary",
        help="Write a JSON summary of the run to this file",
    )
    parser.add_argument(
        "--metrics-file",
        help="Write Prometheus metrics in text format to this file",
    )
    parser.add_argument(
        "--use-vault",
        action="store_true",
        help="Treat config arguments as Vault KV v2 secret paths",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=log_defaults["level"],
        help="Logging level (default: $LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-file",
        default=log_defaults["log_file"],
        help="Also write logs to this file (default: $LOG_FILE)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=log_defaults["json_format"],
        help="Emit logs as JSON (default: on when $LOG_JSON is true)",
    )

    return parser


def split_positionals(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> argparse.Namespace:
    """
    Unpack the positional arguments into named fields.

    Sets ``source_config`` (None when one config is shared), ``target_config``,
    ``source_table`` and ``target_table``.
    """
    values = args.positionals
    if len(values) not in (3, 4):
        parser.error(
            "expected [source.cfg] target.cfg source_table target_table "
            f"(got {len(values)} arguments)"
        )

    args.source_config = values[0] if len(values) == 4 else None
    args.target_config, args.source_table, args.target_table = values[-3:]
    return args
