"""Storage manager: one entity store per record type."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from hospital_records.config import Settings
from hospital_records.store import EntityStore
from hospital_records.types import RecordRegistry, RecordTypeDefinition

logger = logging.getLogger(__name__)


class StorageManager:
    """Owns the entity stores for every storable type in a registry.

    Stores are created once and kept until ``close()``. Call ``open_all()``
    at startup to load every store up front so that a missing or malformed
    file fails there rather than on first use.
    """

    def __init__(
        self,
        data_dir: Path,
        registry: RecordRegistry,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the storage manager.

        Args:
            data_dir: Directory holding the backing files.
            registry: Type registry containing all record types.
            settings: Delimiter and identifier width; defaults otherwise.
        """
        self.data_dir = Path(data_dir)
        self.registry = registry
        self.settings = settings or Settings(data_dir=self.data_dir)
        self._stores: dict[str, EntityStore] = {}

    def file_path_for(self, type_def: RecordTypeDefinition) -> Path:
        """Return the backing file path for a storable type."""
        if not type_def.is_storable or type_def.file_name is None:
            raise ValueError(f"Type '{type_def.name}' has no backing file")
        return self.data_dir / type_def.file_name

    def get_store(self, type_name: str) -> EntityStore:
        """Get the store for a type, creating and loading it on first access.

        Raises:
            KeyError: If the type is not registered.
            ValueError: If the type has no backing file.
            StorageError, FormatError: If the backing file cannot be loaded.
        """
        if type_name in self._stores:
            return self._stores[type_name]

        type_def = self.registry.get_or_raise(type_name)
        store = EntityStore(
            type_def,
            self.file_path_for(type_def),
            delimiter=self.settings.delimiter,
            id_width=self.settings.id_width,
        )
        self._stores[type_name] = store
        return store

    def open_all(self) -> dict[str, EntityStore]:
        """Create and load the store of every storable type."""
        for type_def in self.registry.storable_types():
            self.get_store(type_def.name)
        logger.info("Opened %d store(s) in %s", len(self._stores), self.data_dir)
        return dict(self._stores)

    def initialize(self) -> list[Path]:
        """Write a header-only file for every storable type whose file is missing.

        Returns the paths that were created.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        created: list[Path] = []
        for type_def in self.registry.storable_types():
            path = self.file_path_for(type_def)
            if path.exists():
                continue
            store = EntityStore(
                type_def,
                path,
                delimiter=self.settings.delimiter,
                id_width=self.settings.id_width,
                load=False,
            )
            store.codec.write_file(path, [])
            created.append(path)
            logger.info("Created %s", path)
        return created

    def list_types(self) -> list[str]:
        """List the names of all storable types."""
        return [td.name for td in self.registry.storable_types()]

    def describe(self, type_name: str) -> list[dict[str, Any]]:
        """Describe a type's catalog, one row per persisted field."""
        type_def = self.registry.get_or_raise(type_name)
        return [
            {
                "field": entry.name,
                "column": entry.column,
                "type": entry.field.type_name,
                "declared_by": entry.declared_by,
            }
            for entry in type_def.catalog
        ]

    def close(self) -> None:
        """Drop all stores. Every mutation has already been written."""
        self._stores.clear()

    def __enter__(self) -> StorageManager:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
