"""Runtime settings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from hospital_records.codec import DEFAULT_DELIMITER
from hospital_records.ids import DEFAULT_WIDTH

DATA_DIR_ENV = "HOSPITAL_RECORDS_DATA_DIR"
LOG_LEVEL_ENV = "HOSPITAL_RECORDS_LOG_LEVEL"

DEFAULT_DATA_DIR = Path("data")
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass
class Settings:
    """Where the backing files live and how they are written."""

    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    delimiter: str = DEFAULT_DELIMITER
    id_width: int = DEFAULT_WIDTH
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self) -> None:
        if isinstance(self.data_dir, str):
            self.data_dir = Path(self.data_dir)
        if len(self.delimiter) != 1:
            raise ValueError(f"Delimiter must be a single character, got {self.delimiter!r}")
        if self.id_width < 1:
            raise ValueError(f"Identifier width must be positive, got {self.id_width}")
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        return cls(
            data_dir=Path(env.get(DATA_DIR_ENV, str(DEFAULT_DATA_DIR))),
            log_level=env.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL),
        )

    def configure_logging(self) -> None:
        """Install a basic stderr handler at the configured level."""
        logging.basicConfig(
            level=self.log_level,
            format="%(levelname)s %(name)s: %(message)s",
        )
