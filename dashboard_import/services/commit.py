from __future__ import annotations

import logging
import time
from typing import Any

from ..db.batch_insert import BatchMetrics, batch_insert
from ..errors import CommitFailure
from ..models.commit_result import CommitResult, CommitStatus
from ..models.config_models import TargetConfig
from ..models.import_plan import ImportPlan

"""Confirm & Commit.

Only READY_TO_IMPORT rows are written, as one INSERT batch inside one
transaction: BEGIN -> execute_values -> COMMIT, ROLLBACK on any failure.
Either every ready row becomes visible or none does.
"""

__all__ = [
    "commit_plan",
]

logger = logging.getLogger(__name__)


def _rollback(cursor: Any, table: str) -> None:
    try:
        cursor.execute("ROLLBACK")
    except Exception as e:
        # 元のエラーを優先して上位へ送るため、ここではログのみ
        logger.error("rollback failed table=%s: %s", table, e)


def commit_plan(
    cursor: Any,
    plan: ImportPlan,
    target: TargetConfig,
    *,
    page_size: int = 500,
) -> CommitResult:
    """Write the plan's ready rows to `target.table` as one atomic batch.

    cursor=None is mock mode: nothing is written and the result reports the
    rows that would have been.

    Raises
    ------
    CommitFailure: the batch did not complete; nothing was persisted
    """
    ready = plan.ready_rows
    if not ready:
        logger.warning("nothing to import target=%s file=%s", plan.target, plan.file_name)
        return CommitResult(status=CommitStatus.NOTHING_TO_IMPORT, inserted_rows=0, table=target.table)

    columns = list(ready[0].record or {})
    rows = [[(r.record or {})[c] for c in columns] for r in ready]

    if cursor is None:
        logger.info("mock mode: %d rows not written to %s", len(rows), target.table)
        return CommitResult(
            status=CommitStatus.COMMITTED,
            inserted_rows=len(rows),
            table=target.table,
            dry_run=True,
        )

    def _on_batch(m: BatchMetrics) -> None:
        logger.debug("batch table=%s size=%d elapsed=%.4fs", target.table, m.batch_size, m.elapsed_seconds)

    start = time.perf_counter()
    try:
        cursor.execute("BEGIN")
    except Exception as e:
        raise CommitFailure(f"failed to begin transaction: {e}") from e
    try:
        result = batch_insert(
            cursor,
            table=target.table,
            columns=columns,
            rows=rows,
            page_size=page_size,
            metrics_callback=_on_batch,
            server_timestamp_columns=target.timestamp_columns,
        )
        cursor.execute("COMMIT")
    except Exception as e:
        _rollback(cursor, target.table)
        raise CommitFailure(f"batch import into {target.table} failed: {e}") from e

    elapsed = time.perf_counter() - start
    logger.info("committed %d rows into %s", result.inserted_rows, target.table)
    return CommitResult(
        status=CommitStatus.COMMITTED,
        inserted_rows=result.inserted_rows,
        table=target.table,
        elapsed_seconds=elapsed,
    )
