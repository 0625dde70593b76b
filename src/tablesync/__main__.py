from tablesync.cli import run

run()
