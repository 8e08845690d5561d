"""
Snapshot projection of an Execution.

to_snapshot() turns the in-memory model into the JSON-ready record that
storage and transport consume; from_snapshot() is its inverse. Keys are
camelCase to match the stored document shape:

    {
        "storedId": "...",            # only once the store assigned one
        "executionId": "exec_...",
        "name": "...",
        "status": "in_progress|completed|failed",
        "steps": [{"index", "step", "timestamp", "input", "output",
                   "reasoning", "decision"?, "metadata"?}, ...],
        "createdAt": 1739448000000,
        "completedAt"?: ..., "duration"?: ..., "summary"?: {...}
    }

Optional fields that are unset are left out rather than written as null.
Snapshots are deep copies: mutating the live execution afterwards (a later
append, the failure annotation) never shows through an earlier snapshot.
"""

import copy
from typing import Any, Dict, Mapping, Optional

from xray.tracing.execution import (
    STATUS_IN_PROGRESS,
    Decision,
    Execution,
    ExecutionSummary,
    Step,
)


def decision_to_dict(decision: Decision) -> Dict[str, Any]:
    data: Dict[str, Any] = {"outcome": decision.outcome, "reason": decision.reason}
    if decision.confidence is not None:
        data["confidence"] = decision.confidence
    return data


def step_to_dict(step: Step) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "index": step.index,
        "step": step.step,
        "timestamp": step.timestamp,
        "input": copy.deepcopy(step.input),
        "output": copy.deepcopy(step.output),
        "reasoning": step.reasoning,
    }
    if step.decision is not None:
        data["decision"] = decision_to_dict(step.decision)
    if step.metadata is not None:
        data["metadata"] = copy.deepcopy(step.metadata)
    return data


def summary_to_dict(summary: ExecutionSummary) -> Dict[str, Any]:
    data: Dict[str, Any] = {"totalSteps": summary.total_steps}
    if summary.final_outcome is not None:
        data["finalOutcome"] = summary.final_outcome
    return data


def to_snapshot(execution: Execution) -> Dict[str, Any]:
    """Project an execution into its snapshot record."""
    snapshot: Dict[str, Any] = {}
    if execution.stored_id is not None:
        snapshot["storedId"] = execution.stored_id
    snapshot["executionId"] = execution.execution_id
    snapshot["name"] = execution.name
    snapshot["status"] = execution.status
    snapshot["steps"] = [step_to_dict(s) for s in execution.steps]
    snapshot["createdAt"] = execution.created_at
    if execution.completed_at is not None:
        snapshot["completedAt"] = execution.completed_at
    if execution.duration is not None:
        snapshot["duration"] = execution.duration
    if execution.summary is not None:
        snapshot["summary"] = summary_to_dict(execution.summary)
    return snapshot


def _decision_from_dict(data: Optional[Mapping[str, Any]]) -> Optional[Decision]:
    if data is None:
        return None
    return Decision(
        outcome=data.get("outcome"),
        reason=data.get("reason", ""),
        confidence=data.get("confidence"),
    )


def _step_from_dict(data: Mapping[str, Any]) -> Step:
    return Step(
        index=data["index"],
        step=data["step"],
        timestamp=data["timestamp"],
        input=copy.deepcopy(data.get("input") or {}),
        output=copy.deepcopy(data.get("output") or {}),
        reasoning=data.get("reasoning", ""),
        decision=_decision_from_dict(data.get("decision")),
        metadata=copy.deepcopy(data.get("metadata")),
    )


def from_snapshot(snapshot: Mapping[str, Any]) -> Execution:
    """
    Rebuild an Execution from a snapshot record.

    Missing optional keys come back as None. Values are taken as stored;
    an unknown decision outcome or status is carried through unchanged.
    """
    summary_data = snapshot.get("summary")
    summary = None
    if summary_data is not None:
        summary = ExecutionSummary(
            total_steps=summary_data["totalSteps"],
            final_outcome=summary_data.get("finalOutcome"),
        )

    stored_id = snapshot.get("storedId")
    return Execution(
        execution_id=snapshot["executionId"],
        name=snapshot.get("name", ""),
        created_at=snapshot["createdAt"],
        status=snapshot.get("status", STATUS_IN_PROGRESS),
        steps=[_step_from_dict(s) for s in snapshot.get("steps") or []],
        completed_at=snapshot.get("completedAt"),
        duration=snapshot.get("duration"),
        summary=summary,
        stored_id=str(stored_id) if stored_id is not None else None,
    )
