from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""RejectionRecord model for the rejection log.

Every row that did not make it into the batch (DUPLICATE / INVALID), and every
file-level failure, is recorded as one JSON Lines entry. row=-1 is the
sentinel for file-level errors where no specific row applies.

Key set is fixed: timestamp, file, target, row, error_type, message.
"""

__all__ = [
    "RejectionRecord",
]


@dataclass(frozen=True)
class RejectionRecord:
    """Structured rejection record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: CSV filename being imported
        target: import target name (shops, inventory, ...)
        row: Line number (1-based, header = 1). -1 for file-level errors
        error_type: Classification in UPPER_SNAKE_CASE format
        message: Human-readable reason
    """
    timestamp: str  # ISO8601 UTC
    file: str
    target: str
    row: int  # 不明な場合 -1
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, target: str, row: int, error_type: str, message: str) -> RejectionRecord:
        """Create a new RejectionRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return RejectionRecord(
            timestamp=ts,
            file=file,
            target=target,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
