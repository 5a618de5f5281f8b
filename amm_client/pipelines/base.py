"""
Pipeline run tracking.

A mutating operation moves through a fixed sequence of stages:

    Idle -> Approving(1..n) -> Submitted -> Confirmed -> Extracted -> Done

and any non-terminal stage may drop to Failed. A PipelineRun records where the
run is, which approvals already landed and which transaction was submitted, so
a caller holding a failed run knows what to resume instead of starting over.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..pool_types import AllowanceState

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    """Pipeline execution stage."""
    IDLE = "idle"
    APPROVING = "approving"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    EXTRACTED = "extracted"
    DONE = "done"
    FAILED = "failed"


class PipelineStateError(RuntimeError):
    """Raised on a transition the stage machine does not allow."""
    pass


ALLOWED_TRANSITIONS = {
    PipelineStage.IDLE: {PipelineStage.APPROVING, PipelineStage.SUBMITTED},
    PipelineStage.APPROVING: {PipelineStage.APPROVING, PipelineStage.SUBMITTED},
    PipelineStage.SUBMITTED: {PipelineStage.CONFIRMED},
    PipelineStage.CONFIRMED: {PipelineStage.EXTRACTED},
    PipelineStage.EXTRACTED: {PipelineStage.DONE},
    PipelineStage.DONE: set(),
    PipelineStage.FAILED: set(),
}

TERMINAL_STAGES = (PipelineStage.DONE, PipelineStage.FAILED)


@dataclass
class PipelineRun:
    """
    State of one mutating operation.

    Attributes:
        operation: Operation name, e.g. "swap"
        approvals_required: Number of approval steps this operation runs
        approval_step: 1-based index of the current approval step, 0 before any
        approvals: Allowance states of completed approval steps, in order
        transaction_hash: Hash of the primary transaction once submitted
        last_completed: Label of the last stage that finished successfully
        failed_at: Label of the stage that was running when the run failed
        failure_kind: Error class name of the failure
    """
    operation: str
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    approvals_required: int = 0

    stage: PipelineStage = PipelineStage.IDLE
    approval_step: int = 0
    approvals: List[AllowanceState] = field(default_factory=list)
    transaction_hash: Optional[str] = None

    last_completed: Optional[str] = None
    failed_at: Optional[str] = None
    failure_kind: Optional[str] = None
    error: Optional[str] = None

    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    # Called after every transition, e.g. to persist the run
    on_transition: Optional[Callable[["PipelineRun"], None]] = field(default=None, repr=False, compare=False)

    @property
    def label(self) -> str:
        """Stage label including the approval step, e.g. "approving(2/2)"."""
        if self.stage == PipelineStage.APPROVING:
            return f"{self.stage.value}({self.approval_step}/{self.approvals_required})"
        return self.stage.value

    @property
    def is_complete(self) -> bool:
        return self.stage in TERMINAL_STAGES

    @property
    def success(self) -> bool:
        return self.stage == PipelineStage.DONE

    @property
    def approval_transactions(self) -> List[str]:
        """Hashes of approvals this run actually issued."""
        return [state.approval_transaction for state in self.approvals if state.approved]

    def _check_transition(self, stage: PipelineStage):
        if stage not in ALLOWED_TRANSITIONS[self.stage]:
            raise PipelineStateError(f"{self.operation}: cannot move from {self.label} to {stage.value}")

    def _transition(self, stage: PipelineStage, completed: Optional[str] = None):
        if stage != PipelineStage.FAILED:
            self._check_transition(stage)
            if self.stage != PipelineStage.IDLE:
                self.last_completed = completed or self.label
        self.stage = stage
        if self.is_complete:
            self.completed_at = datetime.utcnow()

        logger.info(f"[{self.operation} {self.run_id}] -> {self.label}")
        if self.on_transition is not None:
            self.on_transition(self)

    def start_approval(self, token: str):
        self._check_transition(PipelineStage.APPROVING)
        if self.approval_step >= self.approvals_required:
            raise PipelineStateError(
                f"{self.operation}: approval step {self.approval_step + 1} exceeds {self.approvals_required}"
            )
        completed = self.label
        self.approval_step += 1
        self._transition(PipelineStage.APPROVING, completed)
        logger.debug(f"[{self.operation} {self.run_id}] checking allowance for {token}")

    def record_approval(self, state: AllowanceState):
        self.approvals.append(state)

    def submitted(self):
        if self.approval_step != self.approvals_required:
            raise PipelineStateError(
                f"{self.operation}: {self.approvals_required - self.approval_step} approval step(s) still pending"
            )
        self._transition(PipelineStage.SUBMITTED)

    def confirmed(self, transaction_hash: str):
        self.transaction_hash = transaction_hash
        self._transition(PipelineStage.CONFIRMED)

    def extracted(self):
        self._transition(PipelineStage.EXTRACTED)

    def done(self):
        self._transition(PipelineStage.DONE)

    def fail(self, error: Exception):
        """
        Mark the run failed and attach it to ``error``.

        A transaction hash carried by the error (submitted, then lost) is
        kept on the run.
        """
        if self.is_complete:
            raise PipelineStateError(f"{self.operation}: run already finished as {self.label}")
        self.failed_at = self.label
        self.failure_kind = type(error).__name__
        self.error = str(error)
        if self.transaction_hash is None:
            self.transaction_hash = getattr(error, "transaction_hash", None)
        self._transition(PipelineStage.FAILED)
        logger.error(
            f"❌ [{self.operation} {self.run_id}] failed at {self.failed_at} "
            f"({self.failure_kind}): {self.error}"
        )
        if hasattr(error, "run"):
            error.run = self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "run_id": self.run_id,
            "stage": self.label,
            "approvals": [
                {
                    "token": state.token,
                    "authorized_amount": str(state.authorized_amount),
                    "approval_transaction": state.approval_transaction,
                }
                for state in self.approvals
            ],
            "transaction_hash": self.transaction_hash,
            "last_completed": self.last_completed,
            "failed_at": self.failed_at,
            "failure_kind": self.failure_kind,
            "error": self.error,
        }
