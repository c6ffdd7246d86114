"""Interactive console for inspecting the hospital record files."""

from __future__ import annotations

import argparse
import readline  # noqa: F401 - enables line editing in input()
import sys
from dataclasses import replace
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from hospital_records.codec import DATE_FORMAT, TIMESTAMP_FORMAT
from hospital_records.command_executor import CommandExecutor, CommandResult, DeleteResult, NextIdResult
from hospital_records.config import Settings
from hospital_records.entities import build_registry
from hospital_records.errors import FormatError, StorageError
from hospital_records.parsing.command_parser import CommandParser
from hospital_records.storage import StorageManager


def _split_statements(content: str) -> list[str]:
    """Split content into statements on semicolons outside string literals."""
    statements = []
    current = []
    in_string = False
    escape_next = False

    for ch in content:
        if escape_next:
            current.append(ch)
            escape_next = False
            continue
        if ch == "\\" and in_string:
            current.append(ch)
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
            current.append(ch)
            continue
        if ch == ";" and not in_string:
            stmt = "".join(current).strip()
            if stmt:
                statements.append(stmt)
            current = []
            continue
        current.append(ch)

    stmt = "".join(current).strip()
    if stmt:
        statements.append(stmt)
    return statements


def format_value(value: Any, max_width: int = 40) -> str:
    """Format a value for display."""
    if value is None:
        return "NULL"
    elif isinstance(value, bool):
        return "true" if value else "false"
    elif isinstance(value, Enum):
        return value.name
    elif isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    elif isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    elif isinstance(value, float):
        return f"{value:.2f}"
    elif isinstance(value, str):
        if len(value) > max_width:
            return repr(value[:max_width - 3] + "...")
        return repr(value)
    else:
        s = str(value)
        if len(s) > max_width:
            return s[:max_width - 3] + "..."
        return s


def print_result(result: CommandResult) -> None:
    """Print command results in a formatted table."""
    if isinstance(result, NextIdResult):
        print(result.identifier)
        return

    if isinstance(result, DeleteResult) and result.deleted_count:
        print(result.message)
        return
    elif result.message:
        print(f"Error: {result.message}")
        return

    if not result.rows:
        print("(no results)")
        return

    col_widths = {col: len(col) for col in result.columns}
    for row in result.rows:
        for col in result.columns:
            col_widths[col] = max(col_widths[col], len(format_value(row.get(col))))

    max_col_width = 40
    for col in col_widths:
        col_widths[col] = min(col_widths[col], max_col_width)

    header = " | ".join(col.ljust(col_widths[col])[:col_widths[col]] for col in result.columns)
    print(header)
    print("-" * len(header))

    for row in result.rows:
        values = []
        for col in result.columns:
            val = format_value(row.get(col))
            if len(val) > col_widths[col]:
                val = val[: col_widths[col] - 3] + "..."
            values.append(val.ljust(col_widths[col]))
        print(" | ".join(values))

    print(f"\n({len(result.rows)} row{'s' if len(result.rows) != 1 else ''})")


def print_help() -> None:
    """Print help information."""
    print("""
Commands:
  show types                          List record types with their prefix, file and count
  describe <Type>                     Show a type's fields in column order
  from <Type>                         List every record of a type
  from <Type> where <field> = <value> List records whose field equals the value
  get <Type> <id>                     Show one record
  next id <Type>                      Show the next identifier for a type
  next id <Type> for <VARIANT>        Show the next identifier for a variant (e.g. DOCTOR)
  delete <Type> <id>                  Delete one record

Values may be "quoted strings", numbers, true/false or bare enum names.
Separate several commands with semicolons.

Other:
  help                                Show this help
  exit, quit                          Leave the console
""")


def open_storage(settings: Settings) -> tuple[StorageManager, CommandExecutor]:
    """Open every store under the configured data directory.

    Raises StorageError or FormatError if any backing file cannot be loaded.
    """
    storage = StorageManager(settings.data_dir, build_registry(), settings)
    storage.open_all()
    return storage, CommandExecutor(storage)


def run_commands(text: str, parser: CommandParser, executor: CommandExecutor) -> int:
    """Run semicolon-separated commands, printing each result.

    Returns 1 if any command failed, 0 otherwise.
    """
    status = 0
    for statement in _split_statements(text):
        try:
            result = executor.execute(parser.parse(statement))
        except (SyntaxError, ValueError) as e:
            print(f"Syntax error: {e}")
            status = 1
            continue
        print_result(result)
        deleted = isinstance(result, DeleteResult) and result.deleted_count > 0
        if result.message and not deleted:
            status = 1
    return status


def run_repl(settings: Settings) -> int:
    """Run the interactive console."""
    print("Hospital records console")
    print(f"Data directory: {settings.data_dir}")
    print("Type 'help' for commands, 'exit' to quit.\n")

    try:
        storage, executor = open_storage(settings)
    except (StorageError, FormatError) as e:
        print(f"Error loading data: {e}", file=sys.stderr)
        return 1

    parser = CommandParser()

    history_file = Path.home() / ".hrs_history"
    try:
        readline.read_history_file(history_file)
    except (FileNotFoundError, OSError):
        pass

    try:
        while True:
            try:
                line = input("hrs> ").strip()
            except EOFError:
                print()
                break

            if not line:
                continue
            if line.lower() in ("exit", "quit"):
                break
            if line.lower() == "help":
                print_help()
                continue

            run_commands(line, parser, executor)
            print()
    except KeyboardInterrupt:
        print("\nInterrupted")
    finally:
        try:
            readline.write_history_file(history_file)
        except OSError:
            pass
        storage.close()

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    arg_parser = argparse.ArgumentParser(
        description="Inspect the hospital's CSV record files"
    )
    arg_parser.add_argument(
        "data_dir",
        type=Path,
        nargs="?",
        default=None,
        help="Directory containing the record files (default: $HOSPITAL_RECORDS_DATA_DIR or ./data)",
    )
    arg_parser.add_argument(
        "-c", "--command",
        type=str,
        help="Execute commands and exit",
    )
    arg_parser.add_argument(
        "--init",
        action="store_true",
        help="Create header-only files for any record type whose file is missing",
    )
    arg_parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (default: $HOSPITAL_RECORDS_LOG_LEVEL or WARNING)",
    )

    args = arg_parser.parse_args(argv)

    settings = Settings.from_env()
    try:
        if args.data_dir is not None:
            settings = replace(settings, data_dir=args.data_dir)
        if args.log_level is not None:
            settings = replace(settings, log_level=args.log_level)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    settings.configure_logging()

    if args.init:
        try:
            created = StorageManager(settings.data_dir, build_registry(), settings).initialize()
        except StorageError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        for path in created:
            print(f"Created {path}")
        if not args.command:
            return 0

    if not settings.data_dir.exists():
        print(f"Error: Data directory not found: {settings.data_dir}", file=sys.stderr)
        return 1

    if args.command:
        try:
            storage, executor = open_storage(settings)
        except (StorageError, FormatError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        try:
            return run_commands(args.command, CommandParser(), executor)
        finally:
            storage.close()

    return run_repl(settings)


if __name__ == "__main__":
    sys.exit(main())
