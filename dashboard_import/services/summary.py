from __future__ import annotations

from ..models.commit_result import CommitResult, CommitStatus
from ..models.import_plan import ImportPlan
from ..models.validated_row import Disposition

"""Review output: the preview table and the SUMMARY line.

SUMMARY body (log_summary adds the "SUMMARY " label):
target={target} file={file} rows={n} ready={r} duplicate={d}
invalid={i} imported={k}
"""

__all__ = [
    "render_preview_table",
    "render_summary_line",
]

_MAX_CELL = 28


def _cell(value: object) -> str:
    text = "" if value is None else str(value)
    if len(text) > _MAX_CELL:
        return text[: _MAX_CELL - 3] + "..."
    return text


def render_preview_table(plan: ImportPlan, columns: list[str] | None = None) -> str:
    """Fixed-width text table: line, disposition, reason, then the row's cells.

    Every row of the plan is rendered, rejected ones included.
    """
    if columns is None:
        columns = list(plan.rows[0].source.values) if plan.rows else []
    header = ["line", "status", *columns, "reason"]
    body: list[list[str]] = []
    for row in plan.rows:
        body.append(
            [
                str(row.row_number),
                row.disposition.value,
                *(_cell(row.source.values.get(c, "")) for c in columns),
                row.reason or "",
            ]
        )
    widths = [len(h) for h in header]
    for line in body:
        for i, cell in enumerate(line):
            widths[i] = max(widths[i], len(cell))

    def fmt(cells: list[str]) -> str:
        return "  ".join(c.ljust(widths[i]) for i, c in enumerate(cells)).rstrip()

    out = [fmt(header), fmt(["-" * w for w in widths])]
    out.extend(fmt(line) for line in body)
    return "\n".join(out)


def render_summary_line(plan: ImportPlan, result: CommitResult | None = None) -> str:
    """Render the SUMMARY body for log_summary. `imported` is 0 until a commit has happened.

    Examples:
        >>> from dashboard_import.models.import_plan import ImportPlan
        >>> render_summary_line(ImportPlan(target="shops", file_name="s.csv", rows=()))
        'target=shops file=s.csv rows=0 ready=0 duplicate=0 invalid=0 imported=0'
    """
    counts = plan.counts()
    imported = 0
    if result is not None and result.status is CommitStatus.COMMITTED and not result.dry_run:
        imported = result.inserted_rows
    return (
        f"target={plan.target} "
        f"file={plan.file_name} "
        f"rows={len(plan)} "
        f"ready={counts[Disposition.READY_TO_IMPORT]} "
        f"duplicate={counts[Disposition.DUPLICATE]} "
        f"invalid={counts[Disposition.INVALID]} "
        f"imported={imported}"
    )
