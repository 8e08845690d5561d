"""
Trace builder: the capture API for one execution.

Usage:
    xray = create_xray("Competitor Product Selection")

    xray.record_step(
        "keyword_generation",
        input={"product_title": title},
        output={"keywords": keywords},
        reasoning="Extracted material, capacity and feature terms",
    )
    xray.record_step(
        "apply_filters",
        input={...},
        output={"passed": 5},
        reasoning="Narrowed 8 candidates to 5",
        decision={"outcome": "filter", "reason": "5 passed", "confidence": 1.0},
    )

    xray.mark_complete("Selected YETI Rambler 32oz")
    snapshot = xray.serialize()

A builder is owned by exactly one pipeline run and is not safe to share
between concurrent tasks.

By default the builder is permissive: steps may be
appended after close and an execution may be closed more than once, each
close overwriting the terminal fields. Pass strict=True to make closed
executions reject further appends and closes with ExecutionClosedError.
"""

from typing import Any, Dict, Iterable, Mapping, Optional, Union

from xray.errors import ExecutionClosedError
from xray.tracing.execution import (
    OUTCOME_EVALUATE,
    STATUS_COMPLETED,
    STATUS_FAILED,
    Decision,
    Evaluation,
    Execution,
    ExecutionSummary,
    Step,
    generate_execution_id,
    now_ms,
)
from xray.tracing.serialization import to_snapshot
from xray.utils.logger import get_logger

logger = get_logger(__name__)

DecisionLike = Union[Decision, Mapping[str, Any]]
EvaluationLike = Union[Evaluation, Mapping[str, Any]]


def _coerce_decision(decision: Optional[DecisionLike]) -> Optional[Decision]:
    if decision is None or isinstance(decision, Decision):
        return decision
    return Decision(
        outcome=decision.get("outcome"),
        reason=decision.get("reason", ""),
        confidence=decision.get("confidence"),
    )


def _evaluation_to_dict(evaluation: EvaluationLike) -> Any:
    if isinstance(evaluation, Evaluation):
        return evaluation.to_dict()
    return evaluation


class XRay:
    """Builds one Execution step by step."""

    def __init__(self, name: str, execution_id: Optional[str] = None, strict: bool = False):
        self.strict = strict
        self._execution = Execution(
            execution_id=execution_id or generate_execution_id(),
            name=name,
            created_at=now_ms(),
        )
        logger.info(f"Execution started: {self._execution.execution_id} ({name})")

    @property
    def execution(self) -> Execution:
        return self._execution

    @property
    def execution_id(self) -> str:
        return self._execution.execution_id

    @property
    def is_closed(self) -> bool:
        return self._execution.is_closed

    def get_execution(self) -> Execution:
        """Return the live execution (not a copy)."""
        return self._execution

    def _guard(self, operation: str) -> None:
        if self.strict and self._execution.is_closed:
            raise ExecutionClosedError(
                self._execution.execution_id, self._execution.status, operation
            )

    # --- Step capture ---

    def record_step(
        self,
        step_name: str,
        input: Dict[str, Any],
        output: Dict[str, Any],
        reasoning: str,
        decision: Optional[DecisionLike] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Append a step to the execution.

        The step's index is the current step count + 1 and its timestamp is
        the time of this call. Payloads are stored as given.
        """
        self._guard("record a step on")
        steps = self._execution.steps
        step = Step(
            index=len(steps) + 1,
            step=step_name,
            timestamp=now_ms(),
            input=input,
            output=output,
            reasoning=reasoning,
            decision=_coerce_decision(decision),
            metadata=metadata,
        )
        steps.append(step)
        logger.debug(f"Step {step.index} recorded on {self._execution.execution_id}: {step_name}")

    def record_evaluation_step(
        self,
        step: str,
        input: Dict[str, Any],
        evaluations: Iterable[EvaluationLike],
        output: Dict[str, Any],
        reasoning: str,
        confidence: Optional[float] = None,
    ) -> None:
        """Shorthand for a step whose decision is 'evaluate' and whose metadata carries the evaluations."""
        self.record_step(
            step,
            input,
            output,
            reasoning,
            decision=Decision(
                outcome=OUTCOME_EVALUATE,
                reason="Evaluation completed",
                confidence=confidence,
            ),
            metadata={"evaluations": [_evaluation_to_dict(e) for e in evaluations]},
        )

    # --- Closing ---

    def _stamp_close(self, status: str) -> None:
        execution = self._execution
        # Clamp so that duration is never negative if the wall clock stepped back
        completed_at = max(now_ms(), execution.created_at)
        execution.status = status
        execution.completed_at = completed_at
        execution.duration = completed_at - execution.created_at

    def mark_complete(self, final_outcome: Optional[str] = None) -> None:
        """Close the execution successfully and derive its summary."""
        self._guard("complete")
        self._stamp_close(STATUS_COMPLETED)
        self._execution.summary = ExecutionSummary(
            total_steps=len(self._execution.steps),
            final_outcome=final_outcome,
        )
        logger.info(
            f"Execution completed: {self._execution.execution_id} "
            f"({len(self._execution.steps)} steps, {self._execution.duration}ms)"
        )

    def mark_failed(self, error: Optional[str] = None) -> None:
        """
        Close the execution as failed.

        If an error message is given and at least one step exists, the last
        step's reasoning gets an `` [ERROR: <error>]`` suffix. No summary is
        derived on failure.
        """
        self._guard("fail")
        self._stamp_close(STATUS_FAILED)
        if error:
            last_step = self._execution.last_step
            if last_step is not None:
                last_step.reasoning += f" [ERROR: {error}]"
            else:
                logger.warning(
                    f"Execution {self._execution.execution_id} failed before any step; "
                    f"error not attached: {error}"
                )
        logger.info(f"Execution failed: {self._execution.execution_id} ({self._execution.duration}ms)")

    # --- Serialization ---

    def serialize(self) -> Dict[str, Any]:
        """Snapshot of the current state, detached from the live execution."""
        return to_snapshot(self._execution)


def create_xray(name: str, execution_id: Optional[str] = None, strict: bool = False) -> XRay:
    """Create a builder for a new execution."""
    return XRay(name, execution_id=execution_id, strict=strict)
