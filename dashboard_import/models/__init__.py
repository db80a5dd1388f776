"""Domain models for the CSV bulk-import tool."""

from .commit_result import CommitResult, CommitStatus
from .config_models import DatabaseConfig, ImportConfig, ReferenceTablesConfig, TargetConfig
from .error_record import RejectionRecord
from .import_plan import ImportPlan
from .reference import ReferenceData, ShopRef, normalize_key
from .row_data import ImportRow
from .validated_row import Disposition, ValidatedRow

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "ReferenceTablesConfig",
    "TargetConfig",
    # Pipeline models
    "ImportRow",
    "Disposition",
    "ValidatedRow",
    "ImportPlan",
    "ReferenceData",
    "ShopRef",
    "normalize_key",
    # Commit / logging
    "CommitResult",
    "CommitStatus",
    "RejectionRecord",
]
