from __future__ import annotations

import logging
from collections.abc import Iterable

from ..csvio.reader import parse_csv
from ..models.import_plan import ImportPlan
from ..models.reference import ReferenceData
from ..models.row_data import ImportRow
from ..models.validated_row import ValidatedRow
from ..targets import RowRejected, TargetSchema, get_target

"""Import reconciliation pipeline: Parse & Validate.

Pure with respect to persistence: the reference snapshot is passed in, nothing
is read from or written to the database, and the same content + snapshot
always yields an equal plan.

Per row, in file order:
  a. natural key against existing keys, then against earlier rows of the file
  b. foreign references (agent / shop), case-insensitive
  c. field rules, first failure wins
  d. READY_TO_IMPORT with the normalized record
"""

__all__ = [
    "parse_and_validate",
    "validate_rows",
    "revalidate_plan",
]

logger = logging.getLogger(__name__)


def _resolve_schema(target: TargetSchema | str) -> TargetSchema:
    return get_target(target) if isinstance(target, str) else target


def _classify(
    row: ImportRow,
    schema: TargetSchema,
    reference: ReferenceData,
    existing_keys: Iterable[str],
    seen_keys: dict[str, int],
    timezone: str,
) -> ValidatedRow:
    key = schema.natural_key(row)
    if key is not None:
        typed = row.get(schema.key_column or "")
        if not key:
            return ValidatedRow.invalid(row, f"{schema.key_label} is required.")
        if key in existing_keys:
            return ValidatedRow.duplicate(row, f"{schema.key_label} '{typed}' already exists.")
        first_seen = seen_keys.get(key)
        if first_seen is not None:
            return ValidatedRow.duplicate(
                row,
                f"{schema.key_label} '{typed}' is duplicated in this file "
                f"(first seen on line {first_seen}).",
            )
    try:
        record = schema.normalize(row, reference, timezone)
    except RowRejected as e:
        return ValidatedRow.invalid(row, e.reason)
    if key:
        # 取込対象になった行のキーだけを記録 (後続行の重複判定用)
        seen_keys[key] = row.row_number
    return ValidatedRow.ready(row, record)


def validate_rows(
    rows: Iterable[ImportRow],
    target: TargetSchema | str,
    reference: ReferenceData,
    *,
    timezone: str = "UTC",
    file_name: str = "<upload>",
) -> ImportPlan:
    """Classify already-parsed rows. Every input row yields exactly one ValidatedRow."""
    schema = _resolve_schema(target)
    existing_keys = schema.known_keys(reference)
    seen_keys: dict[str, int] = {}
    validated = tuple(
        _classify(row, schema, reference, existing_keys, seen_keys, timezone) for row in rows
    )
    plan = ImportPlan(target=schema.name, file_name=file_name, rows=validated)
    counts = plan.counts()
    logger.debug(
        "validated target=%s file=%s rows=%d counts=%s",
        schema.name,
        file_name,
        len(plan),
        {d.name: n for d, n in counts.items()},
    )
    return plan


def parse_and_validate(
    content: bytes | str,
    target: TargetSchema | str,
    reference: ReferenceData,
    *,
    timezone: str = "UTC",
    file_name: str = "<upload>",
) -> ImportPlan:
    """Parse an uploaded CSV and classify every data row.

    Raises
    ------
    CsvParseError: content is not valid UTF-8 delimited text
    InvalidFormatError: header lacks a required column (no row is examined)
    """
    schema = _resolve_schema(target)
    data = parse_csv(content, target=schema.name, required_columns=schema.required_columns)
    return validate_rows(
        data.rows, schema, reference, timezone=timezone, file_name=file_name
    )


def revalidate_plan(plan: ImportPlan, reference: ReferenceData, *, timezone: str = "UTC") -> ImportPlan:
    """Re-run validation of a plan's source rows against a fresh snapshot."""
    return validate_rows(
        (r.source for r in plan.rows),
        plan.target,
        reference,
        timezone=timezone,
        file_name=plan.file_name,
    )
