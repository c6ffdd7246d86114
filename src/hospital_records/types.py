"""Record and field type definitions for the hospital_records store."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from operator import attrgetter
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from hospital_records.catalog import FieldCatalog


class FieldKind(Enum):
    """Scalar kinds a persisted field can hold."""

    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    ENUM = "enum"
    TIMESTAMP = "timestamp"
    DATE = "date"


class Record:
    """Base class for every persisted record.

    Concrete records are dataclasses that declare an ``id`` field. A record
    is valid iff its identifier is non-empty.
    """

    id: str | None = None

    def is_valid(self) -> bool:
        return bool(self.id)


@dataclass
class FieldDefinition:
    """A persisted field: its attribute name, kind and on-disk column.

    Each definition carries a get/set accessor pair bound at registration
    time, so the codec and the store never look attributes up by reflection.
    """

    name: str
    kind: FieldKind
    enum_type: type[Enum] | None = None
    column: str = ""
    _getter: Callable[[Any], Any] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.column:
            self.column = self.name
        if self.kind == FieldKind.ENUM and self.enum_type is None:
            raise TypeError(f"Enum field '{self.name}' requires an enum_type")
        if self.kind != FieldKind.ENUM and self.enum_type is not None:
            raise TypeError(f"Field '{self.name}' is not an enum field")
        self._getter = attrgetter(self.name)

    @property
    def type_name(self) -> str:
        """Return a display name for the field's declared type."""
        if self.enum_type is not None:
            return self.enum_type.__name__
        return self.kind.value

    def get(self, record: Any) -> Any:
        """Read this field from a record."""
        return self._getter(record)

    def set(self, record: Any, value: Any) -> None:
        """Assign this field on a record."""
        setattr(record, self.name, value)


@dataclass
class VariantDefinition:
    """One member of a closed record hierarchy sharing a single store.

    The ``prefix`` is the discriminant's external encoding: identifiers of
    this variant are ``prefix`` followed by digits. ``value`` is what the
    owning type's discriminant field holds for this variant.
    """

    name: str
    prefix: str
    record_class: type[Record]
    value: Any = None


@dataclass(eq=False)
class RecordTypeDefinition:
    """Definition of a record type.

    ``fields`` are the fields declared directly on this type; inherited
    fields come from ``base``. Storable types carry a ``file_name`` and
    either a ``prefix`` with a ``record_class``, or a set of ``variants``
    keyed by identifier prefix. A hierarchy may name a ``discriminant``
    field whose value is fixed by each variant.
    """

    name: str
    fields: list[FieldDefinition] = field(default_factory=list)
    base: RecordTypeDefinition | None = None
    record_class: type[Record] | None = None
    prefix: str | None = None
    file_name: str | None = None
    variants: list[VariantDefinition] = field(default_factory=list)
    abstract: bool = False
    discriminant: str | None = None

    @property
    def is_storable(self) -> bool:
        """Return whether records of this type have their own backing file."""
        return self.file_name is not None and not self.abstract

    @property
    def is_hierarchy(self) -> bool:
        """Return whether this type is a closed set of variants."""
        return bool(self.variants)

    @property
    def chain(self) -> list[RecordTypeDefinition]:
        """Return the inheritance chain, most-base type first."""
        chain: list[RecordTypeDefinition] = []
        current: RecordTypeDefinition | None = self
        while current is not None:
            if current in chain:
                raise TypeError(f"Inheritance cycle through type '{current.name}'")
            chain.append(current)
            current = current.base
        chain.reverse()
        return chain

    @cached_property
    def catalog(self) -> FieldCatalog:
        """Return the memoized field catalog for this type."""
        from hospital_records.catalog import FieldCatalog

        return FieldCatalog(self)

    def get_variant(self, name: str) -> VariantDefinition | None:
        """Get a variant by name (case-insensitive)."""
        for v in self.variants:
            if v.name.lower() == name.lower():
                return v
        return None

    def variant_for_id(self, record_id: str) -> VariantDefinition | None:
        """Select the variant whose prefix, followed only by digits, forms ``record_id``.

        Longer prefixes are tried first so that ``PH001`` never resolves to a
        variant with prefix ``P``.
        """
        for v in sorted(self.variants, key=lambda v: len(v.prefix), reverse=True):
            if re.fullmatch(re.escape(v.prefix) + r"\d+", record_id):
                return v
        return None

    def new_record(self, record_id: str | None = None) -> Record:
        """Create an empty record of this type.

        For a hierarchy the concrete class is selected from ``record_id``.
        """
        if self.is_hierarchy:
            if record_id is None:
                raise ValueError(f"Type '{self.name}' needs an identifier to select a variant")
            variant = self.variant_for_id(record_id)
            if variant is None:
                raise ValueError(f"No variant of '{self.name}' matches identifier '{record_id}'")
            record = variant.record_class()
        elif self.record_class is None or self.abstract:
            raise TypeError(f"Type '{self.name}' cannot be instantiated")
        else:
            record = self.record_class()
        if record_id is not None:
            record.id = record_id
        return record


class RecordRegistry:
    """Registry of all record types."""

    def __init__(self) -> None:
        self._types: dict[str, RecordTypeDefinition] = {}

    def register(self, type_def: RecordTypeDefinition) -> RecordTypeDefinition:
        """Register a record type definition."""
        if type_def.name in self._types:
            raise ValueError(f"Type '{type_def.name}' is already defined")
        if type_def.base is not None and type_def.base.name not in self._types:
            raise ValueError(
                f"Base type '{type_def.base.name}' of '{type_def.name}' is not registered"
            )
        self._types[type_def.name] = type_def
        return type_def

    def get(self, name: str) -> RecordTypeDefinition | None:
        """Get a type by name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> RecordTypeDefinition:
        """Get a type by name, raising if not found."""
        type_def = self._types.get(name)
        if type_def is None:
            raise KeyError(f"Type '{name}' not found")
        return type_def

    def storable_types(self) -> list[RecordTypeDefinition]:
        """List the types that own a backing file."""
        return [td for td in self._types.values() if td.is_storable]

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)
