"""Hospital Records - CSV-backed record stores for a hospital management system."""

from hospital_records.catalog import CatalogEntry, FieldCatalog
from hospital_records.codec import RecordCodec
from hospital_records.config import Settings
from hospital_records.entities import build_registry
from hospital_records.errors import FieldResolutionError, FormatError, StorageError
from hospital_records.ids import next_id
from hospital_records.storage import StorageManager
from hospital_records.store import EntityStore
from hospital_records.types import (
    FieldDefinition,
    FieldKind,
    Record,
    RecordRegistry,
    RecordTypeDefinition,
    VariantDefinition,
)

__all__ = [
    # Storage
    "EntityStore",
    "StorageManager",
    "RecordCodec",
    "next_id",
    "Settings",
    # Type definitions
    "Record",
    "FieldKind",
    "FieldDefinition",
    "VariantDefinition",
    "RecordTypeDefinition",
    "RecordRegistry",
    "FieldCatalog",
    "CatalogEntry",
    "build_registry",
    # Errors
    "StorageError",
    "FormatError",
    "FieldResolutionError",
]

__version__ = "0.1.0"
