"""
Tests for xray/tracing/summary.py — human-readable rendering.
"""

from unittest.mock import patch

from xray.tracing.builder import XRay
from xray.tracing.summary import (
    _fmt_confidence,
    _fmt_duration,
    _fmt_payload,
    format_compact_summary,
    format_verbose_summary,
    write_summary_file,
)


def _make_snapshot(fail=False):
    xray = XRay("Summary Test", execution_id="exec_1700000000000_sum000000")
    xray.record_step("keyword_generation", {"title": "bottle"}, {"keywords": ["a", "b"]}, "Generated 2 keywords")
    xray.record_evaluation_step(
        "llm_relevance_evaluation",
        {"candidates_count": 2},
        [
            {"id": "B001", "passed": True, "reason": "same category"},
            {"id": "B002", "passed": False, "reason": "accessory"},
        ],
        {"competitors": 1},
        "1 of 2 are true competitors",
        confidence=0.95,
    )
    if fail:
        xray.mark_failed("ranking service down")
    else:
        xray.mark_complete("Selected B001 as top competitor")
    return xray.serialize()


# ============================================================================
# TestFormatHelpers
# ============================================================================

class TestFormatHelpers:
    def test_duration_ms(self):
        assert _fmt_duration(42) == "42ms"

    def test_duration_seconds(self):
        assert _fmt_duration(2500) == "2.5s"

    def test_duration_minutes(self):
        assert _fmt_duration(125_000) == "2m 5s"

    def test_duration_missing(self):
        assert _fmt_duration(None) == "—"

    def test_confidence(self):
        assert _fmt_confidence(0.95) == "95%"
        assert _fmt_confidence(None) == "—"

    def test_payload_truncated(self):
        text = _fmt_payload({"items": list(range(200))})
        assert len(text) == 120
        assert text.endswith("…")

    def test_payload_short(self):
        assert _fmt_payload({"a": 1}) == '{"a": 1}'


# ============================================================================
# TestCompactSummary
# ============================================================================

class TestCompactSummary:
    def test_completed(self):
        output = format_compact_summary(_make_snapshot())
        assert "Summary Test" in output
        assert "COMPLETED" in output
        assert "Steps: 2" in output
        assert "Outcome: Selected B001 as top competitor" in output
        assert "exec_1700000000000_sum000000" in output

    def test_failed_shows_failing_step(self):
        output = format_compact_summary(_make_snapshot(fail=True))
        assert "FAILED" in output
        assert "Failed at: llm_relevance_evaluation" in output
        assert "Outcome:" not in output

    def test_in_progress(self):
        output = format_compact_summary(XRay("Open").serialize())
        assert "IN_PROGRESS" in output
        assert "Steps: 0" in output


# ============================================================================
# TestVerboseSummary
# ============================================================================

class TestVerboseSummary:
    def test_lists_steps_with_reasoning(self):
        output = format_verbose_summary(_make_snapshot())
        assert "1. keyword_generation" in output
        assert "why: Generated 2 keywords" in output
        assert "2. llm_relevance_evaluation" in output

    def test_decision_and_evaluations(self):
        output = format_verbose_summary(_make_snapshot())
        assert "[EVALUATE 95%]" in output
        assert "decision: Evaluation completed" in output
        assert "evaluations: 1/2 passed" in output

    def test_summary_section(self):
        output = format_verbose_summary(_make_snapshot())
        assert "Total steps: 2" in output
        assert "Final outcome: Selected B001 as top competitor" in output

    def test_failed_has_no_summary_section(self):
        output = format_verbose_summary(_make_snapshot(fail=True))
        assert "── Summary" not in output
        assert "[ERROR: ranking service down]" in output

    def test_stored_id_shown(self):
        snapshot = _make_snapshot()
        snapshot["storedId"] = "0b5f8f5e-6a8c-4c4e-9d7f-1f2a3b4c5d6e"
        assert "Stored ID: 0b5f8f5e-6a8c-4c4e-9d7f-1f2a3b4c5d6e" in format_verbose_summary(snapshot)

    def test_no_steps(self):
        assert "(no steps recorded)" in format_verbose_summary(XRay("Empty").serialize())


# ============================================================================
# TestWriteSummaryFile
# ============================================================================

class TestWriteSummaryFile:
    def test_writes_markdown(self, tmp_path):
        file_path = write_summary_file(_make_snapshot(), tmp_path)
        assert file_path == tmp_path / "exec_1700000000000_sum000000_summary.md"
        content = file_path.read_text()
        assert content.startswith("# Execution: Summary Test")
        assert "| 2 | llm_relevance_evaluation | evaluate | 95% |" in content
        assert "**Final Outcome:** Selected B001 as top competitor" in content
        assert "- **Evaluations:** 1/2 passed" in content

    def test_step_without_decision(self, tmp_path):
        content = write_summary_file(_make_snapshot(), tmp_path).read_text()
        assert "| 1 | keyword_generation | — | — |" in content

    def test_returns_none_without_execution_id(self, tmp_path):
        assert write_summary_file({"steps": []}, tmp_path) is None

    def test_returns_none_on_os_error(self, tmp_path):
        with patch("pathlib.Path.write_text", side_effect=OSError("read-only")):
            assert write_summary_file(_make_snapshot(), tmp_path) is None
