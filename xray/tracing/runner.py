"""
Glue between a pipeline, its trace builder and the persistence collaborators.

Usage:
    async with traced_execution("Competitor Selection", store=store) as xray:
        keywords = generate_keywords(title)
        xray.record_step("keyword_generation", {...}, {...}, "...")
        ...

On a clean exit the execution is marked complete and saved. If the body
raises or the task is cancelled, the execution is marked failed with the
exception message (or "cancelled"), saved best-effort, and the original
exception propagates.
"""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional, Union

from xray.tracing.builder import XRay, create_xray
from xray.tracing.store import ExecutionStore
from xray.tracing.writer import write_execution_file
from xray.utils.logger import get_logger

logger = get_logger(__name__)


async def persist_execution(
    xray: XRay,
    store: Optional[ExecutionStore] = None,
    traces_dir: Optional[Union[str, Path]] = None,
    write_file: bool = False,
) -> Dict[str, Any]:
    """
    Snapshot an execution and hand it to the configured collaborators.

    The trace file is optional and best-effort: a failed write is logged and
    reported under "file_error". Store failures are not caught.

    Returns dict with executionId, status, and storedId and/or file_path
    (or file_error) depending on what was requested.
    """
    snapshot = xray.serialize()
    result: Dict[str, Any] = {
        "executionId": snapshot["executionId"],
        "status": snapshot["status"],
    }

    if write_file or traces_dir is not None:
        try:
            file_path = write_execution_file(snapshot, traces_dir)
            result["file_path"] = str(file_path)
        except OSError as e:
            logger.error(f"Failed to write execution file: {e}")
            result["file_error"] = str(e)

    if store is not None:
        stored_id = await store.save(snapshot)
        xray.execution.stored_id = stored_id
        result["storedId"] = stored_id

    return result


async def _fail_and_persist(
    xray: XRay,
    error: str,
    store: Optional[ExecutionStore],
    traces_dir: Optional[Union[str, Path]],
    write_file: bool,
) -> None:
    if not xray.is_closed:
        xray.mark_failed(error)
    try:
        await persist_execution(xray, store, traces_dir=traces_dir, write_file=write_file)
    except Exception as persist_error:
        # The pipeline error propagates, not the persistence error
        logger.error(
            f"Failed to persist failed execution {xray.execution_id}: {persist_error}"
        )


@asynccontextmanager
async def traced_execution(
    name: str,
    store: Optional[ExecutionStore] = None,
    execution_id: Optional[str] = None,
    final_outcome: Optional[str] = None,
    traces_dir: Optional[Union[str, Path]] = None,
    write_file: bool = False,
    strict: bool = False,
) -> AsyncIterator[XRay]:
    """
    Async context manager wrapping a pipeline run with a trace.

    Handles:
    - Creating the builder
    - Marking complete on normal exit (unless the body already closed it)
    - Marking failed on exception or task cancellation, then re-raising
    - Persisting the snapshot either way
    """
    xray = create_xray(name, execution_id=execution_id, strict=strict)
    try:
        yield xray
    except asyncio.CancelledError:
        logger.warning(f"Execution cancelled: {xray.execution_id}")
        await _fail_and_persist(xray, "cancelled", store, traces_dir, write_file)
        raise
    except Exception as e:
        await _fail_and_persist(xray, str(e), store, traces_dir, write_file)
        raise

    if not xray.is_closed:
        xray.mark_complete(final_outcome)
    await persist_execution(xray, store, traces_dir=traces_dir, write_file=write_file)
