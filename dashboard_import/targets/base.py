from __future__ import annotations

import re
from collections.abc import Callable, Collection, Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import pandas as pd

from ..models.reference import ReferenceData, normalize_key
from ..models.row_data import ImportRow

"""Shared pieces of the per-target import schemas.

A TargetSchema is the only thing that varies between the shops, inventory and
transaction imports; the pipeline itself is generic. Field helpers raise
RowRejected with the user-facing reason, and the pipeline turns that into an
INVALID row. The exception never escapes the pipeline.
"""

__all__ = [
    "RowRejected",
    "TargetSchema",
    "require_text",
    "resolve_agent",
    "parse_date",
    "parse_positive_amount",
    "match_choice",
]

# JS Date.toString() 形式 ("Mon Jan 01 2024 10:00:00 GMT+0800 (...)") の先頭部分
_JS_DATE_RE = re.compile(r"(\w{3} \w{3} \d{2} \d{4} \d{2}:\d{2}:\d{2})")
_JS_DATE_FMT = "%a %b %d %Y %H:%M:%S"

# Only full dates are accepted: year, month and day must all be present
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}(?:[ T].*)?$")
_US_DATE_RE = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}(?: .*)?$")
_US_DATE_FMTS = ("%m/%d/%Y", "%m/%d/%Y %H:%M", "%m/%d/%Y %H:%M:%S")


def _parse_us_date(value: str) -> pd.Timestamp:
    for fmt in _US_DATE_FMTS:
        ts = pd.to_datetime(value, format=fmt, errors="coerce")
        if not pd.isna(ts):
            return ts
    return pd.NaT


class RowRejected(Exception):
    """A row failed a rule. `reason` is shown to the reviewer as-is."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


Normalizer = Callable[[ImportRow, ReferenceData, str], dict[str, Any]]


@dataclass(frozen=True)
class TargetSchema:
    """Import rules for one collection.

    normalize(row, reference, timezone) resolves references, applies the field
    rules in order and returns the record to persist, or raises RowRejected.
    """
    name: str
    default_table: str
    required_columns: tuple[str, ...]
    normalize: Normalizer
    key_column: str | None = None  # natural key (None: no uniqueness check)
    key_label: str = "Key"
    existing_keys: Callable[[ReferenceData], Collection[str]] | None = None
    timestamp_columns: tuple[str, ...] = ("created_at",)

    def natural_key(self, row: ImportRow) -> str | None:
        if self.key_column is None:
            return None
        return normalize_key(row.get(self.key_column))

    def known_keys(self, reference: ReferenceData) -> Collection[str]:
        if self.existing_keys is None:
            return frozenset()
        return self.existing_keys(reference)


def require_text(row: ImportRow, column: str, reason: str, min_length: int = 1) -> str:
    value = row.get(column)
    if len(value) < min_length:
        raise RowRejected(reason)
    return value


def resolve_agent(row: ImportRow, reference: ReferenceData, column: str = "agent") -> str:
    """Return the canonical agent name for the row's agent cell."""
    typed = row.get(column)
    if not typed:
        raise RowRejected("Agent is required.")
    canonical = reference.resolve_agent(typed)
    if canonical is None:
        raise RowRejected(f"Agent '{typed}' not found.")
    return canonical


def parse_date(value: str, timezone: str = "UTC") -> datetime | None:
    """Parse a user-typed date into an aware datetime, None when unparseable.

    Accepted forms: ISO 8601 (YYYY-MM-DD with optional time and offset),
    MM/DD/YYYY [HH:MM[:SS]] and the JS Date.toString() form. Naive values
    are interpreted in `timezone`; aware values are converted to it.
    """
    if not value:
        return None
    try:
        m = _JS_DATE_RE.search(value)
        if m:
            ts = pd.to_datetime(m.group(1), format=_JS_DATE_FMT, errors="coerce")
        elif _ISO_DATE_RE.match(value):
            ts = pd.to_datetime(value, format="ISO8601", errors="coerce")
        elif _US_DATE_RE.match(value):
            ts = _parse_us_date(value)
        else:
            # 年月日が揃わない値 ("10:00", "March") は受け付けない
            return None
        if pd.isna(ts):
            return None
        if ts.tzinfo is None:
            ts = ts.tz_localize(timezone)
        else:
            ts = ts.tz_convert(timezone)
    except (ValueError, OverflowError):
        return None
    return ts.to_pydatetime()


def parse_positive_amount(value: str) -> Decimal | None:
    try:
        amount = Decimal(value.replace(",", ""))
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def match_choice(value: str, choices: Iterable[str]) -> str | None:
    """Case-insensitive enum membership; returns the canonical spelling."""
    key = normalize_key(value)
    for choice in choices:
        if normalize_key(choice) == key:
            return choice
    return None
