"""
Human-readable rendering of an execution snapshot.

Three outputs:
1. format_compact_summary(snapshot) → short terminal scorecard
2. format_verbose_summary(snapshot) → step-by-step terminal breakdown
3. write_summary_file(snapshot) → markdown to {traces_dir}/{executionId}_summary.md

All functions take the snapshot dict (XRay.serialize() or a stored
document), never the live builder.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from xray.config import settings
from xray.utils.logger import get_logger

logger = get_logger(__name__)

_PAYLOAD_PREVIEW_CHARS = 120


def _fmt_duration(duration_ms: Optional[int]) -> str:
    """Format milliseconds into human-readable duration."""
    if duration_ms is None:
        return "—"
    if duration_ms < 1000:
        return f"{duration_ms}ms"
    seconds = duration_ms / 1000
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds // 60)
    secs = seconds % 60
    return f"{minutes}m {secs:.0f}s"


def _fmt_confidence(confidence: Optional[float]) -> str:
    if confidence is None:
        return "—"
    return f"{confidence:.0%}"


def _fmt_payload(payload: Any) -> str:
    text = json.dumps(payload, default=str, sort_keys=True)
    if len(text) > _PAYLOAD_PREVIEW_CHARS:
        return text[: _PAYLOAD_PREVIEW_CHARS - 1] + "…"
    return text


def _decision_label(step: Dict[str, Any]) -> str:
    decision = step.get("decision")
    if not decision:
        return ""
    return f"[{str(decision.get('outcome', '?')).upper()} {_fmt_confidence(decision.get('confidence'))}]"


def _evaluation_counts(step: Dict[str, Any]) -> Optional[Dict[str, int]]:
    """Count passed/failed evaluations carried in step metadata, if any."""
    evaluations = (step.get("metadata") or {}).get("evaluations")
    if not isinstance(evaluations, list):
        return None
    passed = sum(1 for e in evaluations if isinstance(e, dict) and e.get("passed") is True)
    return {"total": len(evaluations), "passed": passed}


def format_compact_summary(snapshot: Dict[str, Any]) -> str:
    """
    Format a short scorecard for terminal output.

    Example:
        ── Execution Summary ──────────────────────
        Competitor Product Selection Demo
        Status: COMPLETED   Steps: 5   Duration: 42ms
        Outcome: Selected YETI Rambler 32oz as top competitor
        Execution: exec_1739448000000_1a2b3c4d5
        ────────────────────────────────────────────
    """
    summary = snapshot.get("summary") or {}
    steps: List[Dict[str, Any]] = snapshot.get("steps") or []

    lines = ["── Execution Summary ──────────────────────"]
    lines.append(snapshot.get("name") or "—")

    status = str(snapshot.get("status", "unknown")).upper()
    step_count = summary.get("totalSteps", len(steps))
    duration = _fmt_duration(snapshot.get("duration"))
    lines.append(f"Status: {status:<12}Steps: {step_count:<4}Duration: {duration}")

    if summary.get("finalOutcome"):
        lines.append(f"Outcome: {summary['finalOutcome']}")
    elif snapshot.get("status") == "failed" and steps:
        lines.append(f"Failed at: {steps[-1].get('step')}")

    lines.append(f"Execution: {snapshot.get('executionId')}")
    lines.append("────────────────────────────────────────────")
    return "\n".join(lines)


def format_verbose_summary(snapshot: Dict[str, Any]) -> str:
    """Format a step-by-step breakdown with decisions and reasoning."""
    steps: List[Dict[str, Any]] = snapshot.get("steps") or []

    lines = ["══ Execution Detail ═══════════════════════════"]
    lines.append(f"Execution: {snapshot.get('executionId')}")
    if snapshot.get("storedId"):
        lines.append(f"Stored ID: {snapshot['storedId']}")
    lines.append(f"Name:      {snapshot.get('name') or '—'}")
    lines.append(f"Status:    {snapshot.get('status')}    Duration: {_fmt_duration(snapshot.get('duration'))}")
    lines.append("")

    lines.append("── Steps ──────────────────────────────────────")
    for step in steps:
        label = _decision_label(step)
        lines.append(f"  {step.get('index'):>2}. {step.get('step', '?'):<28} {label}".rstrip())
        lines.append(f"      why: {step.get('reasoning', '')}")
        decision = step.get("decision")
        if decision and decision.get("reason"):
            lines.append(f"      decision: {decision['reason']}")
        counts = _evaluation_counts(step)
        if counts is not None:
            lines.append(f"      evaluations: {counts['passed']}/{counts['total']} passed")

    if not steps:
        lines.append("  (no steps recorded)")
    lines.append("")

    summary = snapshot.get("summary")
    if summary:
        lines.append("── Summary ────────────────────────────────────")
        lines.append(f"Total steps: {summary.get('totalSteps')}")
        lines.append(f"Final outcome: {summary.get('finalOutcome') or '—'}")
        lines.append("")

    lines.append("═══════════════════════════════════════════════")
    return "\n".join(lines)


def write_summary_file(
    snapshot: Dict[str, Any], traces_dir: Optional[Union[str, Path]] = None
) -> Optional[Path]:
    """
    Write a markdown summary next to the trace file.

    Returns the file path, or None if writing fails.
    """
    try:
        base = Path(traces_dir) if traces_dir is not None else settings.traces_dir
        base.mkdir(parents=True, exist_ok=True)
        file_path = base / f"{snapshot['executionId']}_summary.md"

        summary = snapshot.get("summary") or {}
        steps: List[Dict[str, Any]] = snapshot.get("steps") or []

        md = []
        md.append(f"# Execution: {snapshot.get('name') or snapshot['executionId']}")
        md.append("")
        md.append(f"**Execution ID:** `{snapshot['executionId']}`")
        md.append(f"**Status:** {snapshot.get('status')}")
        md.append(f"**Duration:** {_fmt_duration(snapshot.get('duration'))}")
        if summary:
            md.append(f"**Total Steps:** {summary.get('totalSteps')}")
            md.append(f"**Final Outcome:** {summary.get('finalOutcome') or '—'}")
        md.append("")

        md.append("## Steps")
        md.append("")
        md.append("| # | Step | Decision | Confidence |")
        md.append("|---|------|----------|------------|")
        for step in steps:
            decision = step.get("decision") or {}
            md.append(
                f"| {step.get('index')} | {step.get('step')} | "
                f"{decision.get('outcome', '—')} | {_fmt_confidence(decision.get('confidence'))} |"
            )
        md.append("")

        md.append("## Reasoning")
        md.append("")
        for step in steps:
            md.append(f"### {step.get('index')}. {step.get('step')}")
            md.append("")
            md.append(step.get("reasoning", ""))
            md.append("")
            md.append(f"- **Input:** `{_fmt_payload(step.get('input'))}`")
            md.append(f"- **Output:** `{_fmt_payload(step.get('output'))}`")
            decision = step.get("decision")
            if decision:
                md.append(f"- **Decision:** {decision.get('outcome')} — {decision.get('reason')}")
            counts = _evaluation_counts(step)
            if counts is not None:
                md.append(f"- **Evaluations:** {counts['passed']}/{counts['total']} passed")
            md.append("")

        md.append("---")
        md.append(f"*Generated from execution {snapshot['executionId']}*")

        file_path.write_text("\n".join(md))
        logger.info(f"Execution summary written: {file_path}")
        return file_path

    except (OSError, KeyError) as e:
        logger.error(f"Failed to write execution summary file: {e}")
        return None
