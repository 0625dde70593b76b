"""
tablesync - generate SQL that makes one MySQL table match another

Components:
- schema: table introspection and the compatibility gate
- sql: quoting, column fragments and statement rendering
- diff: client-buffered and server-side diff strategies
- sync: run orchestration
- cli: command-line entry point

Usage:
    from tablesync.sync import run_sync
    from tablesync.db import MySQLConnection
"""

__version__ = "1.0.0"
__all__ = ["schema", "sql", "diff", "sync", "cli"]
