"""
X-Ray tracing — record what a multi-step pipeline did at each step and why.

Usage:
    from xray.tracing import create_xray

    xray = create_xray("Competitor Product Selection")
    xray.record_step("keyword_generation", {"title": title}, {"keywords": kws},
                     "Generated 2 keyword variations")
    xray.mark_complete("Selected YETI Rambler 32oz")

    snapshot = xray.serialize()
    stored_id = await ExecutionStore(db).save(snapshot)

Or let traced_execution() close and persist for you:

    async with traced_execution("Competitor Product Selection", store=store) as xray:
        ...
"""

from xray.tracing.builder import XRay, create_xray
from xray.tracing.execution import (
    DECISION_OUTCOMES,
    EXECUTION_STATUSES,
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_IN_PROGRESS,
    Decision,
    Evaluation,
    Execution,
    ExecutionSummary,
    Step,
)
from xray.tracing.runner import persist_execution, traced_execution
from xray.tracing.serialization import from_snapshot, to_snapshot
from xray.tracing.store import ExecutionStore
from xray.tracing.summary import format_compact_summary, format_verbose_summary
from xray.tracing.writer import write_execution_file

__all__ = [
    "XRay",
    "create_xray",
    "Decision",
    "Evaluation",
    "Execution",
    "ExecutionSummary",
    "Step",
    "DECISION_OUTCOMES",
    "EXECUTION_STATUSES",
    "STATUS_COMPLETED",
    "STATUS_FAILED",
    "STATUS_IN_PROGRESS",
    "to_snapshot",
    "from_snapshot",
    "ExecutionStore",
    "write_execution_file",
    "persist_execution",
    "traced_execution",
    "format_compact_summary",
    "format_verbose_summary",
]
