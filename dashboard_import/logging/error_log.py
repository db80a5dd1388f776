from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import RejectionRecord
from ..models.import_plan import ImportPlan
from ..models.validated_row import Disposition

"""Rejection log buffering.

- JSON Lines 固定スキーマ (追加キー禁止)
- 起動ごとに `<log_dir>/rejections-YYYYMMDD-HHMMSS.log` (UTC) を生成 (必要時のみ)
- バッファリングして flush() で一括追記
"""

__all__ = [
    "RejectionRecord",
    "RejectionLogBuffer",
]

DEFAULT_LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"

ERROR_TYPES = {
    Disposition.DUPLICATE: "DUPLICATE",
    Disposition.INVALID: "INVALID_DATA",
}


class RejectionLogBuffer:
    """In-memory buffer for rejection records. flush() writes JSON Lines.

    No thread safety: the CLI runs serially.
    """

    def __init__(self, log_dir: Path = DEFAULT_LOGS_DIR) -> None:
        self.log_dir = log_dir
        self._records: list[RejectionRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.log_dir / f"rejections-{stamp}.log"
        return self._file_path

    def append(self, record: RejectionRecord) -> None:
        self._records.append(record)

    def add_plan(self, plan: ImportPlan) -> int:
        """Buffer one record per DUPLICATE / INVALID row. Returns how many."""
        added = 0
        for row in plan.rejected_rows:
            self.append(
                RejectionRecord.create(
                    file=plan.file_name,
                    target=plan.target,
                    row=row.row_number,
                    error_type=ERROR_TYPES[row.disposition],
                    message=row.reason or "",
                )
            )
            added += 1
        return added

    def add_file_error(self, file: str, target: str, error_type: str, message: str) -> None:
        self.append(RejectionRecord.create(file=file, target=target, row=-1, error_type=error_type, message=message))

    @property
    def records(self) -> list[RejectionRecord]:
        return list(self._records)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file; None when there was nothing to write."""
        if not self._records:
            return None
        self.log_dir.mkdir(parents=True, exist_ok=True)
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
