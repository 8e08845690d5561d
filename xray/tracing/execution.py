"""
Execution trace data model.

An Execution is one run of a multi-step process. It owns an ordered,
append-only list of Steps; each Step records what went in, what came out,
why, and optionally a tagged Decision.

Payloads (input, output, metadata) are opaque JSON-style data. Nothing in
this module validates or interprets them.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Execution status values
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

EXECUTION_STATUSES = (STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_FAILED)
TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_FAILED)

# Decision outcomes
OUTCOME_PASS = "pass"
OUTCOME_FAIL = "fail"
OUTCOME_SELECT = "select"
OUTCOME_FILTER = "filter"
OUTCOME_EVALUATE = "evaluate"

DECISION_OUTCOMES = (OUTCOME_PASS, OUTCOME_FAIL, OUTCOME_SELECT, OUTCOME_FILTER, OUTCOME_EVALUATE)

EXECUTION_ID_PREFIX = "exec_"


def now_ms() -> int:
    """Current wall-clock time as integer milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def generate_execution_id() -> str:
    """
    Generate an execution id: ``exec_<ms epoch>_<9 hex chars>``.

    Unique with overwhelming probability, not guaranteed; the store's
    unique index is the last line of defence.
    """
    return f"{EXECUTION_ID_PREFIX}{now_ms()}_{uuid.uuid4().hex[:9]}"


@dataclass
class Decision:
    """A tagged outcome attached to a step."""
    outcome: str                        # pass|fail|select|filter|evaluate
    reason: str
    confidence: Optional[float] = None  # nominally 0.0-1.0, never clamped


@dataclass
class Evaluation:
    """Per-item pass/fail judgment, carried in a step's metadata."""
    passed: bool
    reason: str
    id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.id is not None:
            data["id"] = self.id
        data["passed"] = self.passed
        data["reason"] = self.reason
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data


@dataclass
class Step:
    """One recorded stage of an execution."""
    index: int                          # 1-based position in the execution
    step: str
    timestamp: int                      # ms epoch
    input: Dict[str, Any] = field(default_factory=dict)
    output: Dict[str, Any] = field(default_factory=dict)
    reasoning: str = ""
    decision: Optional[Decision] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class ExecutionSummary:
    """Derived at close time; never set directly by callers."""
    total_steps: int
    final_outcome: Optional[str] = None


@dataclass
class Execution:
    """
    Full state of one execution.

    completed_at, duration and summary stay None while the execution is
    in progress. stored_id belongs to the storage layer and is never
    generated here.
    """
    execution_id: str
    name: str
    created_at: int
    status: str = STATUS_IN_PROGRESS
    steps: List[Step] = field(default_factory=list)
    completed_at: Optional[int] = None
    duration: Optional[int] = None       # ms
    summary: Optional[ExecutionSummary] = None
    stored_id: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.status != STATUS_IN_PROGRESS

    @property
    def last_step(self) -> Optional[Step]:
        return self.steps[-1] if self.steps else None
