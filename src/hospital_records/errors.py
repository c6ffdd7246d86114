"""Exceptions raised by the record store."""

from __future__ import annotations


class StorageError(OSError):
    """A backing file could not be read or written.

    Raised on load when the file is missing, unreadable, empty or has a
    malformed header, and on save when the destination is unwritable.
    """


class FormatError(ValueError):
    """A cell cannot be converted to (or from) its field's declared type."""

    def __init__(
        self,
        message: str,
        *,
        value: str | None = None,
        field_name: str | None = None,
        target_type: str | None = None,
        line_number: int | None = None,
    ) -> None:
        super().__init__(message)
        self.value = value
        self.field_name = field_name
        self.target_type = target_type
        self.line_number = line_number


class FieldResolutionError(KeyError):
    """A field name does not exist anywhere in a record type's chain."""

    def __init__(self, type_name: str, field_name: str) -> None:
        super().__init__(field_name)
        self.type_name = type_name
        self.field_name = field_name

    def __str__(self) -> str:
        return f"Field '{self.field_name}' not found in type '{self.type_name}'"
