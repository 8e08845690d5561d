"""
Exception hierarchy for X-Ray.

    XRayError
    ├── TraceError
    │   └── ExecutionClosedError      (strict builders only)
    └── StorageError
        ├── DuplicateExecutionError   (execution_id already stored)
        ├── InvalidStoredIdError      (unparseable stored id)
        └── InvalidSnapshotError      (snapshot without executionId)
"""


class XRayError(Exception):
    """Base class for all X-Ray errors."""


class TraceError(XRayError):
    """Misuse of a trace builder."""


class ExecutionClosedError(TraceError):
    """Raised by a strict builder when its execution is already closed."""

    def __init__(self, execution_id: str, status: str, operation: str):
        self.execution_id = execution_id
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} execution '{execution_id}': already {status}"
        )


class StorageError(XRayError):
    """The persistence collaborator rejected or could not complete a call."""


class DuplicateExecutionError(StorageError):
    """An execution with the same execution_id is already stored."""


class InvalidStoredIdError(StorageError):
    """A stored id could not be parsed."""


class InvalidSnapshotError(StorageError):
    """A snapshot is missing a field the store requires."""
