"""Sequential identifier allocation."""

from __future__ import annotations

import logging
import re
from typing import Iterable

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 3


def format_id(prefix: str, number: int, width: int = DEFAULT_WIDTH) -> str:
    """Return ``prefix`` followed by ``number`` zero-padded to ``width``.

    Numbers wider than ``width`` keep all their digits.
    """
    return f"{prefix}{number:0{width}d}"


def parse_suffix(prefix: str, identifier: str) -> int | None:
    """Return the numeric suffix of ``identifier`` under ``prefix``, or None.

    Only an exact prefix followed by digits matches: ``PH001`` has no
    suffix under ``P``.
    """
    match = re.fullmatch(re.escape(prefix) + r"([0-9]+)", identifier)
    if match is None:
        return None
    return int(match.group(1))


def next_id(prefix: str, ids: Iterable[str], width: int = DEFAULT_WIDTH) -> str:
    """Return the next unused identifier for ``prefix``.

    The result's number is one more than the largest suffix among ``ids``
    sharing the prefix, or 1 when none does. Identifiers that start with the
    prefix but continue with non-digits are skipped.
    """
    highest = 0
    for identifier in ids:
        if not identifier or not identifier.startswith(prefix):
            continue
        number = parse_suffix(prefix, identifier)
        if number is None:
            logger.debug("Skipping identifier %r: no numeric suffix after %r", identifier, prefix)
            continue
        highest = max(highest, number)
    return format_id(prefix, highest + 1, width)
