from __future__ import annotations

from dataclasses import dataclass

from .validated_row import Disposition, ValidatedRow

"""ImportPlan model: the reviewable output of one pipeline run."""

__all__ = [
    "ImportPlan",
]


@dataclass(frozen=True)
class ImportPlan:
    """Ordered collection of ValidatedRow produced from one uploaded file.

    Rows keep file order and include every disposition; nothing is dropped.
    """
    target: str  # target schema name
    file_name: str
    rows: tuple[ValidatedRow, ...]

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def ready_rows(self) -> list[ValidatedRow]:
        return [r for r in self.rows if r.is_ready]

    @property
    def ready_count(self) -> int:
        return sum(1 for r in self.rows if r.is_ready)

    @property
    def rejected_rows(self) -> list[ValidatedRow]:
        return [r for r in self.rows if not r.is_ready]

    def counts(self) -> dict[Disposition, int]:
        out = {d: 0 for d in Disposition}
        for r in self.rows:
            out[r.disposition] += 1
        return out
