"""Executes inspection commands against the entity stores."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from hospital_records.codec import parse_cell
from hospital_records.errors import FormatError
from hospital_records.parsing.command_parser import (
    Command,
    DeleteCommand,
    DescribeCommand,
    GetCommand,
    NextIdCommand,
    SelectCommand,
    ShowTypesCommand,
)
from hospital_records.storage import StorageManager
from hospital_records.types import FieldDefinition, FieldKind, Record, RecordTypeDefinition

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result of a command execution."""

    columns: list[str]
    rows: list[dict[str, Any]]
    message: str | None = None


@dataclass
class DeleteResult(CommandResult):
    """Result of a DELETE command."""

    deleted_count: int = 0


@dataclass
class NextIdResult(CommandResult):
    """Result of a NEXT ID command."""

    identifier: str = ""


def coerce_value(raw: Any, field_def: FieldDefinition) -> Any:
    """Convert a parsed literal to the field's kind for comparison.

    Raises FormatError if the literal does not fit the field.
    """
    kind = field_def.kind
    if isinstance(raw, str):
        return parse_cell(raw.strip(), field_def)
    if isinstance(raw, bool):
        if kind == FieldKind.BOOLEAN:
            return raw
        return parse_cell("true" if raw else "false", field_def)
    if kind == FieldKind.FLOAT and isinstance(raw, (int, float)):
        return float(raw)
    if kind == FieldKind.INTEGER and isinstance(raw, int):
        return raw
    return parse_cell(str(raw), field_def)


class CommandExecutor:
    """Executes parsed commands against storage."""

    def __init__(self, storage: StorageManager) -> None:
        self.storage = storage
        self.registry = storage.registry

    def execute(self, command: Command) -> CommandResult:
        """Execute a command and return results."""
        if isinstance(command, ShowTypesCommand):
            return self._execute_show_types(command)
        elif isinstance(command, DescribeCommand):
            return self._execute_describe(command)
        elif isinstance(command, SelectCommand):
            return self._execute_select(command)
        elif isinstance(command, GetCommand):
            return self._execute_get(command)
        elif isinstance(command, NextIdCommand):
            return self._execute_next_id(command)
        elif isinstance(command, DeleteCommand):
            return self._execute_delete(command)
        else:
            raise ValueError(f"Unknown command type: {type(command)}")

    def _storable_type(self, type_name: str) -> RecordTypeDefinition | None:
        type_def = self.registry.get(type_name)
        if type_def is None or not type_def.is_storable:
            return None
        return type_def

    def _record_row(self, type_def: RecordTypeDefinition, record: Record) -> dict[str, Any]:
        return {entry.column: entry.field.get(record) for entry in type_def.catalog}

    def _execute_show_types(self, command: ShowTypesCommand) -> CommandResult:
        rows = []
        for type_name in self.storage.list_types():
            type_def = self.registry.get_or_raise(type_name)
            store = self.storage.get_store(type_name)
            if type_def.is_hierarchy:
                prefix = ", ".join(f"{v.name}={v.prefix}" for v in type_def.variants)
            else:
                prefix = type_def.prefix
            rows.append({
                "type": type_def.name,
                "prefix": prefix,
                "file": type_def.file_name,
                "count": len(store),
            })
        return CommandResult(columns=["type", "prefix", "file", "count"], rows=rows)

    def _execute_describe(self, command: DescribeCommand) -> CommandResult:
        if command.type_name not in self.registry:
            return CommandResult(columns=[], rows=[], message=f"Unknown type: {command.type_name}")
        rows = self.storage.describe(command.type_name)
        return CommandResult(columns=["field", "column", "type", "declared_by"], rows=rows)

    def _execute_select(self, command: SelectCommand) -> CommandResult:
        type_def = self._storable_type(command.type_name)
        if type_def is None:
            return CommandResult(columns=[], rows=[], message=f"Unknown type: {command.type_name}")
        store = self.storage.get_store(type_def.name)

        if command.where is None:
            records = store.to_list()
        else:
            entry = type_def.catalog.get(command.where.field)
            value = command.where.value
            if entry is not None:
                try:
                    value = coerce_value(value, entry.field)
                except FormatError as e:
                    return CommandResult(columns=[], rows=[], message=str(e))
            records = store.find_by_field(command.where.field, value)

        rows = [self._record_row(type_def, r) for r in records]
        rows.sort(key=lambda row: str(row.get("id") or ""))
        return CommandResult(columns=type_def.catalog.columns, rows=rows)

    def _execute_get(self, command: GetCommand) -> CommandResult:
        type_def = self._storable_type(command.type_name)
        if type_def is None:
            return CommandResult(columns=[], rows=[], message=f"Unknown type: {command.type_name}")
        record = self.storage.get_store(type_def.name).get(command.record_id)
        if record is None:
            return CommandResult(columns=[], rows=[], message=f"No {type_def.name} with id '{command.record_id}'")
        return CommandResult(
            columns=["field", "value"],
            rows=[
                {"field": column, "value": value}
                for column, value in self._record_row(type_def, record).items()
            ],
        )

    def _execute_next_id(self, command: NextIdCommand) -> CommandResult:
        type_def = self._storable_type(command.type_name)
        if type_def is None:
            return CommandResult(columns=[], rows=[], message=f"Unknown type: {command.type_name}")
        store = self.storage.get_store(type_def.name)
        try:
            if command.variant is not None:
                identifier = store.next_id_for_variant(command.variant)
            else:
                identifier = store.next_id_for_type()
        except ValueError as e:
            return CommandResult(columns=[], rows=[], message=str(e))
        return NextIdResult(columns=["next_id"], rows=[{"next_id": identifier}], identifier=identifier)

    def _execute_delete(self, command: DeleteCommand) -> DeleteResult:
        type_def = self._storable_type(command.type_name)
        if type_def is None:
            return DeleteResult(columns=[], rows=[], message=f"Unknown type: {command.type_name}")
        store = self.storage.get_store(type_def.name)
        if not store.remove_id(command.record_id):
            return DeleteResult(
                columns=[], rows=[],
                message=f"No {type_def.name} with id '{command.record_id}'",
                deleted_count=0,
            )
        logger.info("Deleted %s '%s'", type_def.name, command.record_id)
        return DeleteResult(
            columns=["deleted"],
            rows=[{"deleted": 1}],
            message=f"Deleted {type_def.name} '{command.record_id}'",
            deleted_count=1,
        )
