"""Field catalog: the ordered persisted fields of a record type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from hospital_records.errors import FieldResolutionError
from hospital_records.types import FieldDefinition, FieldKind

if TYPE_CHECKING:
    from hospital_records.types import RecordTypeDefinition


@dataclass(frozen=True, eq=False)
class CatalogEntry:
    """A field in a catalog, with the rank of the type that declares it.

    Rank 0 is the most-base type in the chain.
    """

    field: FieldDefinition
    rank: int
    declared_by: str

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def column(self) -> str:
        return self.field.column

    @property
    def kind(self) -> FieldKind:
        return self.field.kind


class FieldCatalog:
    """Ordered list of a record type's fields across its inheritance chain.

    Base-type fields come first in declaring order, then each derived
    type's own fields. When a derived type redeclares a base field name the
    derived declaration replaces the base one in the base's position, so
    column positions never move.
    """

    def __init__(self, type_def: RecordTypeDefinition) -> None:
        self.type_name = type_def.name
        self._entries: list[CatalogEntry] = []
        positions: dict[str, int] = {}

        for rank, declaring in enumerate(type_def.chain):
            for f in declaring.fields:
                entry = CatalogEntry(field=f, rank=rank, declared_by=declaring.name)
                if f.name in positions:
                    self._entries[positions[f.name]] = entry
                else:
                    positions[f.name] = len(self._entries)
                    self._entries.append(entry)

        self._by_name = {e.name: e for e in self._entries}
        self._by_column = {e.column: e for e in self._entries}
        if len(self._by_column) != len(self._entries):
            raise TypeError(f"Duplicate column names in type '{self.type_name}'")

    @property
    def entries(self) -> list[CatalogEntry]:
        return list(self._entries)

    @property
    def names(self) -> list[str]:
        """Return attribute names in catalog order."""
        return [e.name for e in self._entries]

    @property
    def columns(self) -> list[str]:
        """Return on-disk column names in catalog order."""
        return [e.column for e in self._entries]

    def get(self, name: str) -> CatalogEntry | None:
        """Look up an entry by attribute name or column name."""
        entry = self._by_name.get(name)
        if entry is None:
            entry = self._by_column.get(name)
        return entry

    def get_by_column(self, column: str) -> CatalogEntry | None:
        return self._by_column.get(column)

    def resolve(self, name: str) -> CatalogEntry:
        """Look up an entry, raising FieldResolutionError if unknown."""
        entry = self.get(name)
        if entry is None:
            raise FieldResolutionError(self.type_name, name)
        return entry

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None
