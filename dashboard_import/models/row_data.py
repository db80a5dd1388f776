from __future__ import annotations

from dataclasses import dataclass

"""ImportRow model for the CSV bulk-import tool.

An ImportRow is one parsed data line of an uploaded CSV file, before any
validation has happened.
"""

__all__ = [
    "ImportRow",
]


@dataclass(frozen=True)
class ImportRow:
    """Logical representation of a single CSV data line.

    `values` is keyed by the normalized (trimmed, lower-cased) header so that
    lookups never depend on how the uploader capitalised the column names.
    `row_number` is the 1-based line number in the file (header = line 1).
    """
    row_number: int
    values: dict[str, str]  # normalized header -> trimmed cell text

    def get(self, column: str) -> str:
        """Return the trimmed cell for `column` (case-insensitive), '' when absent."""
        return self.values.get(column.strip().lower(), "")
