from __future__ import annotations

"""Failure conditions signaled to callers of the import pipeline.

Row-level problems are never exceptions: they become DUPLICATE / INVALID
rows in the plan. Only whole-operation failures are raised.
"""

__all__ = [
    "ImportPipelineError",
    "CsvParseError",
    "InvalidFormatError",
    "CommitFailure",
]


class ImportPipelineError(Exception):
    """Base exception for import pipeline failures."""


class CsvParseError(ImportPipelineError):
    """Raised when the uploaded content is not valid delimited text."""


class InvalidFormatError(ImportPipelineError):
    """Raised when the header row lacks required columns."""

    def __init__(self, target: str, missing: list[str], required: list[str]) -> None:
        super().__init__(
            f"CSV for '{target}' must contain the headers: {', '.join(required)} "
            f"(missing: {', '.join(missing)})"
        )
        self.target = target
        self.missing = tuple(missing)
        self.required = tuple(required)


class CommitFailure(ImportPipelineError):
    """Raised when the batch write did not complete. Nothing was persisted."""
