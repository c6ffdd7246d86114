"""Keyed, file-backed collection of records of one type."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Iterator

from hospital_records.codec import DEFAULT_DELIMITER, RecordCodec
from hospital_records.errors import FieldResolutionError, FormatError, StorageError
from hospital_records.ids import DEFAULT_WIDTH, next_id
from hospital_records.types import Record, RecordTypeDefinition

logger = logging.getLogger(__name__)


class EntityStore:
    """Manages the records of a single type, persisted to one delimited file.

    The store maps identifier to record. Every mutating call rewrites the
    whole backing file; a failed write is logged and leaves the in-memory
    state as it is.
    """

    def __init__(
        self,
        type_def: RecordTypeDefinition,
        file_path: Path,
        delimiter: str = DEFAULT_DELIMITER,
        id_width: int = DEFAULT_WIDTH,
        load: bool = True,
    ) -> None:
        """Initialize the store.

        Args:
            type_def: The record type held by this store.
            file_path: Backing file. Fixed for the store's lifetime.
            delimiter: Cell delimiter for the backing file.
            id_width: Zero-padding width for allocated identifiers.
            load: Read the backing file now. Raises StorageError or
                FormatError if it cannot be loaded.
        """
        self._type_def = type_def
        self._file_path = Path(file_path)
        self.codec = RecordCodec(type_def, delimiter)
        self.id_width = id_width
        self._records: dict[str, Record] = {}

        if load:
            self.load()

    @property
    def type_def(self) -> RecordTypeDefinition:
        return self._type_def

    @property
    def file_path(self) -> Path:
        return self._file_path

    @property
    def size(self) -> int:
        """Return the number of records in the store."""
        return len(self._records)

    def load(self) -> None:
        """Replace the in-memory contents with the backing file's records.

        Raises StorageError if the file is missing, empty or has a malformed
        header, and FormatError if any row is malformed. Nothing is replaced
        unless the whole file decodes.
        """
        records = self.codec.read_file(self._file_path)
        loaded: dict[str, Record] = {}
        for record in records:
            loaded[record.id] = record  # type: ignore[index]
        self._records = loaded
        logger.debug("Loaded %d %s record(s) from %s", len(loaded), self._type_def.name, self._file_path)

    def save(self) -> bool:
        """Rewrite the backing file from the current records.

        Returns False, after logging, if the file could not be written.
        """
        try:
            self.codec.write_file(self._file_path, self._records.values())
        except (StorageError, FormatError) as e:
            logger.error("Failed to save %s records to %s: %s", self._type_def.name, self._file_path, e)
            return False
        return True

    def add(self, record: Record) -> None:
        """Insert a record, replacing any record with the same identifier."""
        if not record.is_valid():
            raise ValueError(f"Cannot add a {self._type_def.name} record without an identifier")
        self._records[record.id] = record  # type: ignore[index]
        self.save()

    def remove(self, record: Record) -> None:
        """Remove the record with this record's identifier, if present."""
        if record.id is not None:
            self.remove_id(record.id)

    def remove_id(self, record_id: str) -> bool:
        """Remove a record by identifier. Returns whether one was removed."""
        if self._records.pop(record_id, None) is None:
            return False
        self.save()
        return True

    def get(self, record_id: str) -> Record | None:
        """Get a record by identifier, or None if absent."""
        return self._records.get(record_id)

    def update(self, record: Record) -> bool:
        """Replace an existing record with the same identifier.

        Does nothing if the identifier is not already stored. Returns
        whether the record was replaced.
        """
        if record.id is None or record.id not in self._records:
            return False
        self._records[record.id] = record
        self.save()
        return True

    def find_by_field(self, name: str, value: Any) -> list[Record]:
        """Return every record whose field ``name`` equals ``value``.

        ``name`` may be an attribute or a column name and is resolved across
        the whole inheritance chain. Records lacking the field are logged and
        skipped, so an unknown name yields an empty list.
        """
        catalog = self.codec.catalog
        matches: list[Record] = []
        for record in self._records.values():
            try:
                entry = catalog.resolve(name)
            except FieldResolutionError as e:
                logger.warning("Skipping %s record '%s': %s", self._type_def.name, record.id, e)
                continue
            field_value = entry.field.get(record)
            if field_value is not None and field_value == value:
                matches.append(record)
        return matches

    def all_ids(self) -> list[str]:
        """Return every stored identifier."""
        return list(self._records.keys())

    def to_list(self) -> list[Record]:
        """Return every stored record."""
        return list(self._records.values())

    def next_id(self, prefix: str) -> str:
        """Return the next unused identifier under ``prefix``."""
        return next_id(prefix, self._records.keys(), self.id_width)

    def next_id_for_type(self) -> str:
        """Return the next identifier under this type's own prefix."""
        if self._type_def.prefix is None:
            raise ValueError(
                f"Type '{self._type_def.name}' has no single prefix; use next_id_for_variant"
            )
        return self.next_id(self._type_def.prefix)

    def next_id_for_variant(self, variant: str | Enum) -> str:
        """Return the next identifier for one variant of a closed hierarchy.

        ``variant`` is a variant name or an enum member with that name.
        """
        name = variant.name if isinstance(variant, Enum) else variant
        variant_def = self._type_def.get_variant(name)
        if variant_def is None:
            raise ValueError(f"Unknown variant '{name}' for type '{self._type_def.name}'")
        return self.next_id(variant_def.prefix)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def __repr__(self) -> str:
        return f"EntityStore({self._type_def.name!r}, {str(self._file_path)!r}, size={len(self._records)})"
