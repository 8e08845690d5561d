"""
Tests for xray/tracing/execution.py — trace data model.
"""

import re

from xray.tracing.execution import (
    DECISION_OUTCOMES,
    EXECUTION_STATUSES,
    STATUS_IN_PROGRESS,
    Decision,
    Evaluation,
    Execution,
    ExecutionSummary,
    Step,
    generate_execution_id,
    now_ms,
)


# ============================================================================
# TestDecision
# ============================================================================

class TestDecision:
    def test_decision_creation(self):
        d = Decision(outcome="filter", reason="5 passed", confidence=0.8)
        assert d.outcome == "filter"
        assert d.reason == "5 passed"
        assert d.confidence == 0.8

    def test_confidence_optional(self):
        d = Decision(outcome="pass", reason="ok")
        assert d.confidence is None

    def test_out_of_range_confidence_kept(self):
        """Confidence is not clamped or validated."""
        d = Decision(outcome="select", reason="x", confidence=1.7)
        assert d.confidence == 1.7

    def test_outcomes(self):
        assert DECISION_OUTCOMES == ("pass", "fail", "select", "filter", "evaluate")


# ============================================================================
# TestEvaluation
# ============================================================================

class TestEvaluation:
    def test_to_dict_minimal(self):
        e = Evaluation(passed=True, reason="in range")
        assert e.to_dict() == {"passed": True, "reason": "in range"}

    def test_to_dict_full(self):
        e = Evaluation(passed=False, reason="too cheap", id="B003", metadata={"price": 8.99})
        assert e.to_dict() == {
            "id": "B003",
            "passed": False,
            "reason": "too cheap",
            "metadata": {"price": 8.99},
        }


# ============================================================================
# TestStep / TestExecution
# ============================================================================

class TestStep:
    def test_step_defaults(self):
        s = Step(index=1, step="search", timestamp=1000)
        assert s.input == {}
        assert s.output == {}
        assert s.reasoning == ""
        assert s.decision is None
        assert s.metadata is None


class TestExecution:
    def test_execution_defaults(self):
        e = Execution(execution_id="exec_1", name="Demo", created_at=1000)
        assert e.status == STATUS_IN_PROGRESS
        assert e.steps == []
        assert e.completed_at is None
        assert e.duration is None
        assert e.summary is None
        assert e.stored_id is None
        assert e.is_closed is False
        assert e.last_step is None

    def test_last_step(self):
        e = Execution(execution_id="exec_1", name="Demo", created_at=1000)
        e.steps.append(Step(index=1, step="a", timestamp=1001))
        e.steps.append(Step(index=2, step="b", timestamp=1002))
        assert e.last_step.step == "b"

    def test_is_closed(self):
        e = Execution(execution_id="exec_1", name="Demo", created_at=1000, status="failed")
        assert e.is_closed is True

    def test_statuses(self):
        assert EXECUTION_STATUSES == ("in_progress", "completed", "failed")

    def test_summary(self):
        s = ExecutionSummary(total_steps=3)
        assert s.final_outcome is None


# ============================================================================
# TestIdentifiers
# ============================================================================

class TestIdentifiers:
    def test_execution_id_format(self):
        execution_id = generate_execution_id()
        assert re.fullmatch(r"exec_\d{13,}_[0-9a-f]{9}", execution_id)

    def test_execution_ids_distinct(self):
        ids = {generate_execution_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_now_ms_is_milliseconds(self):
        value = now_ms()
        assert isinstance(value, int)
        # After 2020-01-01 and before 2100-01-01
        assert 1_577_836_800_000 < value < 4_102_444_800_000
