"""CSV bulk-import reconciliation for the operations dashboard.

Parse & validate an uploaded CSV against a reference snapshot, review the
resulting plan, then commit the ready rows to PostgreSQL as one batch.
"""

from .errors import CommitFailure, CsvParseError, ImportPipelineError, InvalidFormatError
from .models import Disposition, ImportPlan, ImportRow, ReferenceData, ShopRef, ValidatedRow
from .services.commit import commit_plan
from .services.pipeline import parse_and_validate, revalidate_plan, validate_rows
from .services.session import ImportSession, SessionStatus

__version__ = "0.1.0"

__all__ = [
    "CommitFailure",
    "CsvParseError",
    "ImportPipelineError",
    "InvalidFormatError",
    "Disposition",
    "ImportPlan",
    "ImportRow",
    "ReferenceData",
    "ShopRef",
    "ValidatedRow",
    "commit_plan",
    "parse_and_validate",
    "revalidate_plan",
    "validate_rows",
    "ImportSession",
    "SessionStatus",
]
