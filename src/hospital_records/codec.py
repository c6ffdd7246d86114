"""Delimited-text codec for records.

A backing file is a header line of column names followed by one line per
record. Columns follow the record type's field catalog. Cells are split on
a single delimiter character with no quoting or escaping, and trimmed.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable

from hospital_records.catalog import CatalogEntry, FieldCatalog
from hospital_records.errors import FormatError, StorageError
from hospital_records.types import FieldDefinition, FieldKind, Record

if TYPE_CHECKING:
    from hospital_records.types import RecordTypeDefinition

logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = ","

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M"
# Seconds are accepted on read and dropped on write
_TIMESTAMP_READ_FORMATS = (TIMESTAMP_FORMAT, "%Y-%m-%dT%H:%M:%S")
DATE_FORMAT = "%Y-%m-%d"

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def _format_error(text: str, field_def: FieldDefinition, reason: str = "") -> FormatError:
    message = (
        f"Invalid value '{text}' for field '{field_def.name}' "
        f"of type {field_def.type_name}"
    )
    if reason:
        message += f": {reason}"
    return FormatError(
        message,
        value=text,
        field_name=field_def.name,
        target_type=field_def.type_name,
    )


def parse_cell(text: str, field_def: FieldDefinition) -> Any:
    """Convert a trimmed cell to the field's declared type.

    An empty cell is None. Raises FormatError if the text does not fit.
    """
    if text == "":
        return None

    kind = field_def.kind
    if kind == FieldKind.TEXT:
        return text
    elif kind == FieldKind.INTEGER:
        if not _INTEGER_RE.fullmatch(text):
            raise _format_error(text, field_def)
        return int(text)
    elif kind == FieldKind.FLOAT:
        if not _FLOAT_RE.fullmatch(text):
            raise _format_error(text, field_def)
        return float(text)
    elif kind == FieldKind.BOOLEAN:
        lowered = text.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        raise _format_error(text, field_def, "expected true or false")
    elif kind == FieldKind.ENUM:
        members = list(field_def.enum_type or ())
        wanted = text.strip().lower()
        for member in members:
            if member.name.lower() == wanted:
                return member
        names = ", ".join(m.name for m in members)
        raise _format_error(text, field_def, f"expected one of {names}")
    elif kind == FieldKind.TIMESTAMP:
        for fmt in _TIMESTAMP_READ_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
        raise _format_error(text, field_def, f"expected {TIMESTAMP_FORMAT}")
    elif kind == FieldKind.DATE:
        try:
            return datetime.strptime(text, DATE_FORMAT).date()
        except ValueError:
            raise _format_error(text, field_def, f"expected {DATE_FORMAT}") from None
    else:
        raise TypeError(f"Cannot parse field kind: {kind}")


def format_cell(value: Any, field_def: FieldDefinition) -> str:
    """Render a field value as a cell according to the field's kind.

    None renders as an empty cell. Raises FormatError if the value does not
    fit the kind, so that nothing unreadable is ever written.
    """
    if value is None:
        return ""

    kind = field_def.kind
    if kind == FieldKind.TEXT:
        if isinstance(value, str):
            return value
    elif kind == FieldKind.INTEGER:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
    elif kind == FieldKind.FLOAT:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if not math.isfinite(value):
                raise _format_error(str(value), field_def, "not a finite number")
            return f"{float(value):.2f}"
    elif kind == FieldKind.BOOLEAN:
        if isinstance(value, bool):
            return "true" if value else "false"
    elif kind == FieldKind.ENUM:
        if field_def.enum_type is not None and isinstance(value, field_def.enum_type):
            return value.name
    elif kind == FieldKind.TIMESTAMP:
        if isinstance(value, datetime):
            return value.strftime(TIMESTAMP_FORMAT)
    elif kind == FieldKind.DATE:
        # datetime is a date subclass; only the date part is stored
        if isinstance(value, date):
            return value.strftime(DATE_FORMAT)
    else:
        raise TypeError(f"Cannot format field kind: {kind}")
    raise _format_error(str(value), field_def, f"unexpected {type(value).__name__}")


class RecordCodec:
    """Converts between delimited rows and records of one type.

    All column handling is driven by the type's field catalog; there is no
    per-type logic. For a closed hierarchy the concrete record class is
    chosen from the identifier cell before the fields are assigned.
    """

    def __init__(
        self, type_def: RecordTypeDefinition, delimiter: str = DEFAULT_DELIMITER
    ) -> None:
        if len(delimiter) != 1:
            raise ValueError(f"Delimiter must be a single character, got {delimiter!r}")
        self.type_def = type_def
        self.delimiter = delimiter

    @property
    def catalog(self) -> FieldCatalog:
        return self.type_def.catalog

    def header_line(self) -> str:
        """Return the header line written for this type."""
        return self.delimiter.join(self.catalog.columns)

    def _split(self, line: str) -> list[str]:
        return [cell.strip() for cell in line.rstrip("\r\n").split(self.delimiter)]

    def parse_header(self, line: str) -> list[CatalogEntry]:
        """Resolve each header column against the catalog.

        Raises StorageError if the header is empty or malformed.
        """
        columns = self._split(line)
        if not any(columns):
            raise StorageError(f"Empty header for type '{self.type_def.name}'")

        entries: list[CatalogEntry] = []
        seen: set[str] = set()
        for column in columns:
            if not column:
                raise StorageError(f"Blank column name in header for type '{self.type_def.name}'")
            if column in seen:
                raise StorageError(f"Duplicate column '{column}' in header for type '{self.type_def.name}'")
            entry = self.catalog.get(column)
            if entry is None:
                raise StorageError(
                    f"Unknown column '{column}' in header for type '{self.type_def.name}'"
                )
            seen.add(column)
            entries.append(entry)
        if not any(e.name == "id" for e in entries):
            raise StorageError(f"Header for type '{self.type_def.name}' has no identifier column")
        return entries

    def decode_row(
        self,
        header: list[CatalogEntry],
        line: str,
        line_number: int | None = None,
    ) -> Record:
        """Decode one data row into a populated record.

        Raises FormatError naming the offending value and field.
        """
        cells = self._split(line)
        where = f" (line {line_number})" if line_number is not None else ""
        if len(cells) != len(header):
            raise FormatError(
                f"Expected {len(header)} cells but found {len(cells)}{where}",
                line_number=line_number,
            )

        values: dict[str, Any] = {}
        for entry, cell in zip(header, cells):
            try:
                values[entry.name] = parse_cell(cell, entry.field)
            except FormatError as e:
                e.line_number = line_number
                e.args = (f"{e.args[0]}{where}",)
                raise

        record_id = values.get("id")
        if not record_id:
            raise FormatError(f"Row has no identifier{where}", field_name="id", line_number=line_number)

        if self.type_def.is_hierarchy:
            self._check_variant(record_id, values.get(self.type_def.discriminant or ""), where, line_number)
        record = self.type_def.new_record(record_id)

        for entry in header:
            value = values[entry.name]
            # An empty discriminant cell keeps the variant's own value
            if value is None and entry.name == self.type_def.discriminant:
                continue
            entry.field.set(record, value)
        return record

    def _check_variant(
        self,
        record_id: str,
        discriminant_value: Any,
        where: str = "",
        line_number: int | None = None,
    ) -> None:
        """Raise FormatError unless the identifier and discriminant agree on one variant."""
        variant = self.type_def.variant_for_id(record_id)
        if variant is None:
            prefixes = ", ".join(v.prefix for v in self.type_def.variants)
            raise FormatError(
                f"Identifier '{record_id}' does not match any {self.type_def.name} "
                f"variant prefix ({prefixes}){where}",
                value=record_id,
                field_name="id",
                target_type=self.type_def.name,
                line_number=line_number,
            )
        if discriminant_value is not None and discriminant_value != variant.value:
            shown = getattr(discriminant_value, "name", discriminant_value)
            raise FormatError(
                f"Identifier '{record_id}' is a {variant.name} but "
                f"{self.type_def.discriminant} is {shown}{where}",
                value=str(shown),
                field_name=self.type_def.discriminant,
                target_type=self.type_def.name,
                line_number=line_number,
            )

    def encode_row(self, record: Record) -> str:
        """Encode a record as one row in catalog order.

        Raises FormatError if a value does not fit its field, if a rendered
        cell contains the delimiter or a line break (the format has no
        escaping), or if a hierarchy record's identifier and discriminant
        disagree.
        """
        if self.type_def.is_hierarchy:
            discriminant = None
            if self.type_def.discriminant is not None:
                discriminant = self.catalog.resolve(self.type_def.discriminant).field.get(record)
            self._check_variant(record.id or "", discriminant)
        cells = []
        for entry in self.catalog:
            cell = format_cell(entry.field.get(record), entry.field)
            if self.delimiter in cell or "\n" in cell or "\r" in cell:
                raise FormatError(
                    f"Value {cell!r} for field '{entry.name}' of record '{record.id}' "
                    f"contains the delimiter or a line break",
                    value=cell,
                    field_name=entry.name,
                    target_type=entry.field.type_name,
                )
            cells.append(cell)
        return self.delimiter.join(cells)

    def decode_lines(self, lines: Iterable[str]) -> list[Record]:
        """Decode a header line followed by data lines. Blank lines are ignored."""
        header: list[CatalogEntry] | None = None
        records: list[Record] = []
        for line_number, line in enumerate(lines, start=1):
            if header is None:
                header = self.parse_header(line)
                continue
            if not line.strip():
                continue
            records.append(self.decode_row(header, line, line_number))
        if header is None:
            raise StorageError(f"Empty file for type '{self.type_def.name}'")
        return records

    def encode_records(self, records: Iterable[Record]) -> list[str]:
        """Encode the header line followed by one line per record."""
        return [self.header_line()] + [self.encode_row(r) for r in records]

    def read_file(self, path: Path) -> list[Record]:
        """Read and decode a whole backing file."""
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                lines = f.read().splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read {path}: {e}") from e
        try:
            return self.decode_lines(lines)
        except StorageError as e:
            raise StorageError(f"{e} in {path}") from e

    def write_file(self, path: Path, records: Iterable[Record]) -> None:
        """Encode records and overwrite the backing file.

        Encoding completes before the file is opened, so a FormatError
        leaves the existing file untouched.
        """
        lines = self.encode_records(records)
        try:
            with open(path, "w", encoding="utf-8", newline="") as f:
                for line in lines:
                    f.write(line)
                    f.write("\n")
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from e
        logger.debug("Wrote %d %s record(s) to %s", len(lines) - 1, self.type_def.name, path)
