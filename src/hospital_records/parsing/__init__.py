"""Parsing module for the inspection command language."""

from hospital_records.parsing.command_parser import (
    CommandParser,
    Condition,
    SelectCommand,
)

__all__ = [
    "CommandParser",
    "Condition",
    "SelectCommand",
]
