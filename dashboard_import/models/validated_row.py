from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .row_data import ImportRow

"""ValidatedRow domain model and Disposition enum.

Every uploaded row ends up as exactly one ValidatedRow. The disposition is an
explicit tag rather than a free-form status string; instances are built through
the ready()/duplicate()/invalid() constructors so a READY_TO_IMPORT row always
carries a record and a rejected row always carries a reason.
"""

__all__ = [
    "Disposition",
    "ValidatedRow",
]


class Disposition(Enum):
    """Classification outcome of a single import row.

    - READY_TO_IMPORT: passed every check, record is normalized
    - DUPLICATE: natural key already exists (persisted or earlier in file)
    - INVALID: unresolved reference or malformed field
    """
    READY_TO_IMPORT = "Ready to Import"
    DUPLICATE = "Duplicate"
    INVALID = "Invalid"


@dataclass(frozen=True)
class ValidatedRow:
    row_number: int
    disposition: Disposition
    source: ImportRow
    reason: str | None = None
    record: dict[str, Any] | None = None  # only for READY_TO_IMPORT

    @classmethod
    def ready(cls, source: ImportRow, record: dict[str, Any]) -> ValidatedRow:
        return cls(source.row_number, Disposition.READY_TO_IMPORT, source, None, record)

    @classmethod
    def duplicate(cls, source: ImportRow, reason: str) -> ValidatedRow:
        return cls(source.row_number, Disposition.DUPLICATE, source, reason)

    @classmethod
    def invalid(cls, source: ImportRow, reason: str) -> ValidatedRow:
        return cls(source.row_number, Disposition.INVALID, source, reason)

    @property
    def is_ready(self) -> bool:
        return self.disposition is Disposition.READY_TO_IMPORT
