from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Commit outcome models."""


class CommitStatus(Enum):
    """Outcome of a confirm/commit call that did not raise.

    Failures are not a status: they surface as CommitFailure.
    """
    COMMITTED = "committed"
    NOTHING_TO_IMPORT = "nothing_to_import"


@dataclass(frozen=True)
class CommitResult:
    status: CommitStatus
    inserted_rows: int  # rows written (or that would be written in mock mode)
    table: str
    elapsed_seconds: float = 0.0
    dry_run: bool = False  # True when no DB cursor was available

    @property
    def message(self) -> str:
        if self.status is CommitStatus.NOTHING_TO_IMPORT:
            return "No valid rows to import."
        verb = "would be imported" if self.dry_run else "imported successfully"
        return f"{self.inserted_rows} rows {verb} into {self.table}."
