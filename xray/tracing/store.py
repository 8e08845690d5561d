"""
ExecutionStore — persistence collaborator for execution snapshots.

Backed by the xray_executions table (see xray/db/migrations/_001_executions.py).
The store assigns stored ids, enforces execution_id uniqueness through the
table's unique index, and lists newest first.

Usage:
    async with Database(settings.database_url) as db:
        store = ExecutionStore(db)
        await store.ensure_schema()

        stored_id = await store.save(xray.serialize())
        recent = await store.list_recent(limit=20)
        snapshot = await store.get(stored_id)

Driver failures are re-raised as StorageError (DuplicateExecutionError for
a repeated execution_id) with the original exception chained. Nothing is
retried here.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

import asyncpg

from xray.config import settings
from xray.db.connection import Database
from xray.db.migrations._001_executions import UP
from xray.errors import (
    DuplicateExecutionError,
    InvalidSnapshotError,
    InvalidStoredIdError,
    StorageError,
)
from xray.tracing.execution import EXECUTION_STATUSES, now_ms
from xray.utils.logger import get_logger

logger = get_logger(__name__)

MAX_LIST_LIMIT = 200

# Errors from the driver or the network that mean "storage failed"
_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def parse_stored_id(stored_id: Any) -> uuid.UUID:
    """Parse a stored id, raising InvalidStoredIdError if it is not a UUID."""
    if isinstance(stored_id, uuid.UUID):
        return stored_id
    try:
        return uuid.UUID(str(stored_id))
    except (ValueError, TypeError, AttributeError) as e:
        raise InvalidStoredIdError(f"Invalid execution ID: {stored_id!r}") from e


def _row_to_snapshot(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a table row into a snapshot with its storedId attached."""
    document = dict(row["snapshot"] or {})
    snapshot: Dict[str, Any] = {"storedId": str(row["stored_id"])}
    snapshot.update(document)
    return snapshot


class ExecutionStore:
    """Save, list and fetch execution snapshots."""

    def __init__(self, db: Database):
        self.db = db

    async def ensure_schema(self) -> None:
        """Create the executions table and its indexes if missing."""
        try:
            await self.db.execute(UP)
        except _DRIVER_ERRORS as e:
            raise StorageError(str(e)) from e
        logger.info("Executions schema ensured")

    async def save(self, snapshot: Dict[str, Any]) -> str:
        """
        Persist a snapshot and return its stored id.

        If the snapshot carries no storedId one is assigned, and a missing
        createdAt defaults to the current time. On success the passed
        snapshot gets its storedId (and any defaulted createdAt) set.

        Raises:
            DuplicateExecutionError: executionId (or storedId) already stored
            InvalidStoredIdError: snapshot carries an unparseable storedId
            InvalidSnapshotError: snapshot has no executionId
            StorageError: any other database or connection failure
        """
        raw_id = snapshot.get("storedId")
        stored_id = parse_stored_id(raw_id) if raw_id is not None else uuid.uuid4()

        document = {k: v for k, v in snapshot.items() if k != "storedId"}
        if not document.get("executionId"):
            raise InvalidSnapshotError("Snapshot has no executionId")
        if not document.get("createdAt"):
            document["createdAt"] = now_ms()
        summary = document.get("summary") or {}

        query = """
            INSERT INTO xray_executions (
                stored_id, execution_id, name, status,
                created_at, completed_at, duration_ms,
                total_steps, final_outcome, snapshot
            ) VALUES (
                $1, $2, $3, $4,
                $5, $6, $7,
                $8, $9, $10
            )
        """

        try:
            await self.db.execute(
                query,
                stored_id,                                  # $1
                document["executionId"],                    # $2
                document.get("name", ""),                   # $3
                document.get("status", "in_progress"),      # $4
                document["createdAt"],                      # $5
                document.get("completedAt"),                # $6
                document.get("duration"),                   # $7
                summary.get("totalSteps"),                  # $8
                summary.get("finalOutcome"),                # $9
                document,                                   # $10
            )
        except asyncpg.UniqueViolationError as e:
            logger.warning(f"Duplicate execution rejected: {document['executionId']}")
            raise DuplicateExecutionError(str(e)) from e
        except _DRIVER_ERRORS as e:
            logger.error(f"Failed to save execution {document['executionId']}: {e}")
            raise StorageError(str(e)) from e

        snapshot["storedId"] = str(stored_id)
        snapshot["createdAt"] = document["createdAt"]
        logger.info(f"Execution saved: {document['executionId']} -> {stored_id}")
        return str(stored_id)

    async def list_recent(
        self, limit: Optional[int] = None, status: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Most recently created snapshots, newest first.

        limit defaults to settings.list_limit and is clamped to 1..200.
        status, when given, must be one of the execution statuses.
        """
        if limit is None:
            limit = settings.list_limit
        limit = max(1, min(MAX_LIST_LIMIT, limit))

        if status is not None and status not in EXECUTION_STATUSES:
            raise ValueError(f"Unknown status '{status}'; expected one of {EXECUTION_STATUSES}")

        try:
            if status is None:
                rows = await self.db.fetch_all(
                    """
                    SELECT stored_id, snapshot
                    FROM xray_executions
                    ORDER BY created_at DESC
                    LIMIT $1
                    """,
                    limit,
                )
            else:
                rows = await self.db.fetch_all(
                    """
                    SELECT stored_id, snapshot
                    FROM xray_executions
                    WHERE status = $1
                    ORDER BY created_at DESC
                    LIMIT $2
                    """,
                    status, limit,
                )
        except _DRIVER_ERRORS as e:
            raise StorageError(str(e)) from e

        return [_row_to_snapshot(r) for r in rows]

    async def get(self, stored_id: Any) -> Optional[Dict[str, Any]]:
        """Fetch one snapshot by stored id. Returns None if there is no such row."""
        parsed = parse_stored_id(stored_id)
        try:
            row = await self.db.fetch_one(
                "SELECT stored_id, snapshot FROM xray_executions WHERE stored_id = $1",
                parsed,
            )
        except _DRIVER_ERRORS as e:
            raise StorageError(str(e)) from e

        if row is None:
            return None
        return _row_to_snapshot(row)

    async def count(self) -> int:
        try:
            value = await self.db.fetch_val("SELECT COUNT(*) FROM xray_executions")
        except _DRIVER_ERRORS as e:
            raise StorageError(str(e)) from e
        return int(value or 0)

    async def health(self) -> Dict[str, Any]:
        """
        Connectivity check.

        Returns {"status": "healthy", "database": "connected", "executionsCount", "timestamp"}
        or {"status": "unhealthy", "database": "disconnected", "error"}.
        """
        try:
            count = await self.count()
        except (StorageError, RuntimeError) as e:
            logger.error(f"Health check failed: {e}")
            return {
                "status": "unhealthy",
                "database": "disconnected",
                "error": str(e),
            }

        return {
            "status": "healthy",
            "database": "connected",
            "executionsCount": count,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
