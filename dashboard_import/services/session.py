from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from ..errors import CommitFailure
from ..models.commit_result import CommitResult, CommitStatus
from ..models.config_models import TargetConfig
from ..models.import_plan import ImportPlan
from ..models.reference import ReferenceData
from .commit import commit_plan
from .pipeline import revalidate_plan

"""Upload -> review -> confirm lifecycle of one import.

State transitions:
    REVIEWING -> COMMITTING -> COMMITTED
                            -> REVIEWING   (commit failed, plan kept for retry)
                            -> DISCARDED   (nothing to import)
    REVIEWING -> DISCARDED                 (user cancelled)

Cancelling never interrupts work: nothing is in flight before confirm().
"""

__all__ = [
    "SessionStatus",
    "SessionStateError",
    "ImportSession",
]

logger = logging.getLogger(__name__)


class SessionStatus(Enum):
    REVIEWING = "reviewing"
    COMMITTING = "committing"
    COMMITTED = "committed"
    DISCARDED = "discarded"


class SessionStateError(Exception):
    """confirm()/discard() called in a state that does not allow it."""


class ImportSession:
    """Holds one ImportPlan while a human reviews it."""

    def __init__(self, plan: ImportPlan, target: TargetConfig, *, timezone: str = "UTC", page_size: int = 500) -> None:
        self._plan: ImportPlan | None = plan
        self.last_plan: ImportPlan = plan  # plan as last validated, kept after commit for reporting
        self.target = target
        self.timezone = timezone
        self.page_size = page_size
        self.status = SessionStatus.REVIEWING
        self.last_error: str | None = None

    @property
    def plan(self) -> ImportPlan | None:
        return self._plan

    @property
    def ready_count(self) -> int:
        return self._plan.ready_count if self._plan is not None else 0

    @property
    def importing(self) -> bool:
        return self.status is SessionStatus.COMMITTING

    @property
    def can_confirm(self) -> bool:
        return self.status is SessionStatus.REVIEWING and self.ready_count > 0

    def confirm(self, cursor: Any, reference: ReferenceData | None = None) -> CommitResult:
        """Commit the ready rows.

        When `reference` is given the plan is re-validated against it first,
        so rows made stale by concurrent changes are not written.

        Raises
        ------
        SessionStateError: session is not REVIEWING
        CommitFailure: batch failed; session is back to REVIEWING with the plan intact
        """
        if self.status is not SessionStatus.REVIEWING or self._plan is None:
            raise SessionStateError(f"cannot confirm import in state {self.status.value}")

        if reference is not None:
            before = self._plan.ready_count
            self._plan = revalidate_plan(self._plan, reference, timezone=self.timezone)
            self.last_plan = self._plan
            if self._plan.ready_count != before:
                logger.warning(
                    "reference data changed since preview: ready rows %d -> %d",
                    before,
                    self._plan.ready_count,
                )

        self.status = SessionStatus.COMMITTING
        try:
            result = commit_plan(cursor, self._plan, self.target, page_size=self.page_size)
        except CommitFailure as e:
            self.status = SessionStatus.REVIEWING
            self.last_error = str(e)
            raise

        self.last_error = None
        if result.status is CommitStatus.NOTHING_TO_IMPORT:
            self.status = SessionStatus.DISCARDED
        else:
            self.status = SessionStatus.COMMITTED
        self._plan = None
        return result

    def discard(self) -> None:
        if self.status is SessionStatus.COMMITTING:
            raise SessionStateError("cannot discard while committing")
        if self.status is not SessionStatus.REVIEWING:
            return
        self.status = SessionStatus.DISCARDED
        self._plan = None
