from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

"""DB batch insert.

psycopg2.extras.execute_values によるバッチ INSERT。
Transaction boundaries (BEGIN / COMMIT / ROLLBACK) are owned by the caller;
this function only issues the INSERT on the given cursor.

Server-assigned columns (created_at, updated_at, ...) are not passed as values:
they are appended to the VALUES template as now().
"""


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Metrics data for a single batch insert operation."""
    batch_size: int  # Number of rows in this batch
    elapsed_seconds: float  # Time spent on execute_values call
    start_time: float  # Start timestamp (time.time())
    end_time: float  # End timestamp (time.time())


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int


def build_insert_sql(
    table: str,
    columns: Sequence[str],
    server_timestamp_columns: Sequence[str] = (),
) -> tuple[str, str | None]:
    """Return (sql, template) for execute_values.

    template is None when no server-side columns are involved (execute_values
    then builds the plain "(%s,...)" template itself).
    """
    all_columns = [*columns, *server_timestamp_columns]
    cols_sql = ",".join(f'"{c}"' for c in all_columns)
    sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"
    template = None
    if server_timestamp_columns:
        placeholders = ["%s"] * len(columns) + ["now()"] * len(server_timestamp_columns)
        template = f"({','.join(placeholders)})"
    return sql, template


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    page_size: int = 1000,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
    server_timestamp_columns: Sequence[str] = (),
) -> InsertResult:
    """Perform batched INSERT using psycopg2.extras.execute_values.

    Parameters
    ----------
    cursor: psycopg2 cursor (inside a transaction opened by the caller)
    table: 対象テーブル名 (設定値, サニタイズ済み想定)
    columns: 値を渡す列
    rows: 行シーケンス (columns と同順)
    page_size: execute_values の page_size
    metrics_callback: receives BatchMetrics after the call. Not invoked for
        empty `rows` (the function returns early).
    server_timestamp_columns: columns filled with now() by the server
    """
    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0)

    sql, template = build_insert_sql(table, columns, server_timestamp_columns)

    start_time = time.time()
    try:
        execute_values(cursor, sql, rows_list, template=template, page_size=page_size)
    except Exception as e:
        raise BatchInsertError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(rows_list),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    return InsertResult(inserted_rows=len(rows_list))
