"""
Tests for xray/tracing/runner.py — persist_execution and traced_execution.
"""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from xray.errors import DuplicateExecutionError, StorageError
from xray.tracing.builder import XRay
from xray.tracing.runner import persist_execution, traced_execution


STORED_ID = "0b5f8f5e-6a8c-4c4e-9d7f-1f2a3b4c5d6e"


def _mock_store(side_effect=None):
    store = MagicMock()
    store.save = AsyncMock(return_value=STORED_ID, side_effect=side_effect)
    return store


# ============================================================================
# TestPersistExecution
# ============================================================================

class TestPersistExecution:
    @pytest.mark.asyncio
    async def test_nothing_requested(self):
        xray = XRay("Demo")
        xray.mark_complete()
        result = await persist_execution(xray)
        assert result == {"executionId": xray.execution_id, "status": "completed"}

    @pytest.mark.asyncio
    async def test_saves_to_store(self):
        store = _mock_store()
        xray = XRay("Demo")
        xray.mark_complete("done")
        result = await persist_execution(xray, store)
        assert result["storedId"] == STORED_ID
        assert xray.execution.stored_id == STORED_ID
        saved = store.save.await_args.args[0]
        assert saved["executionId"] == xray.execution_id
        assert saved["summary"] == {"totalSteps": 0, "finalOutcome": "done"}

    @pytest.mark.asyncio
    async def test_writes_file(self, tmp_path):
        xray = XRay("Demo")
        xray.mark_complete()
        result = await persist_execution(xray, traces_dir=tmp_path)
        assert Path(result["file_path"]).exists()

    @pytest.mark.asyncio
    async def test_file_error_reported_not_raised(self, tmp_path):
        xray = XRay("Demo")
        xray.mark_complete()
        with patch("xray.tracing.runner.write_execution_file", side_effect=OSError("disk full")):
            result = await persist_execution(xray, traces_dir=tmp_path)
        assert result["file_error"] == "disk full"
        assert "file_path" not in result

    @pytest.mark.asyncio
    async def test_store_error_propagates(self):
        store = _mock_store(side_effect=DuplicateExecutionError("duplicate key"))
        xray = XRay("Demo")
        xray.mark_complete()
        with pytest.raises(DuplicateExecutionError, match="duplicate key"):
            await persist_execution(xray, store)
        assert xray.execution.stored_id is None


# ============================================================================
# TestTracedExecution
# ============================================================================

class TestTracedExecution:
    @pytest.mark.asyncio
    async def test_marks_complete_on_exit(self):
        store = _mock_store()
        async with traced_execution("Demo", store=store, final_outcome="ok") as xray:
            xray.record_step("a", {}, {}, "r")
        assert xray.execution.status == "completed"
        assert xray.execution.summary.final_outcome == "ok"
        assert xray.execution.stored_id == STORED_ID
        store.save.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_body_close_respected(self):
        store = _mock_store()
        async with traced_execution("Demo", store=store, final_outcome="ignored") as xray:
            xray.mark_complete("from body")
        assert xray.execution.summary.final_outcome == "from body"

    @pytest.mark.asyncio
    async def test_marks_failed_and_reraises(self):
        store = _mock_store()
        with pytest.raises(ValueError, match="boom"):
            async with traced_execution("Demo", store=store) as xray:
                xray.record_step("a", {}, {}, "r")
                raise ValueError("boom")
        assert xray.execution.status == "failed"
        assert xray.execution.steps[0].reasoning == "r [ERROR: boom]"
        saved = store.save.await_args.args[0]
        assert saved["status"] == "failed"

    @pytest.mark.asyncio
    async def test_persist_error_does_not_mask_pipeline_error(self):
        store = _mock_store(side_effect=StorageError("unreachable"))
        with pytest.raises(ValueError, match="boom"):
            async with traced_execution("Demo", store=store):
                raise ValueError("boom")

    @pytest.mark.asyncio
    async def test_persist_error_surfaces_on_success(self):
        store = _mock_store(side_effect=StorageError("unreachable"))
        with pytest.raises(StorageError, match="unreachable"):
            async with traced_execution("Demo", store=store) as xray:
                xray.record_step("a", {}, {}, "r")

    @pytest.mark.asyncio
    async def test_without_store(self, tmp_path):
        async with traced_execution("Demo", traces_dir=tmp_path, execution_id="exec_file") as xray:
            xray.record_step("a", {}, {}, "r")
        assert (tmp_path / "exec_file.json").exists()

    @pytest.mark.asyncio
    async def test_strict_passed_through(self):
        async with traced_execution("Demo", strict=True) as xray:
            pass
        assert xray.strict is True

    @pytest.mark.asyncio
    async def test_cancelled_task_marks_failed_and_saves(self):
        store = _mock_store()
        entered = asyncio.Event()
        captured = {}

        async def pipeline():
            async with traced_execution("Demo", store=store) as xray:
                captured["xray"] = xray
                xray.record_step("a", {}, {}, "r")
                entered.set()
                await asyncio.sleep(10)

        task = asyncio.create_task(pipeline())
        await entered.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        xray = captured["xray"]
        assert xray.execution.status == "failed"
        assert xray.execution.steps[0].reasoning == "r [ERROR: cancelled]"
        store.save.assert_awaited_once()
        assert store.save.await_args.args[0]["status"] == "failed"
