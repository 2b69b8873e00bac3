"""
perfcore Exceptions

Domain-specific exceptions for the performance layer.
Capacity pressure is never an error; these cover caller misuse and
failures of external collaborators.
"""

from typing import Optional, Any, Dict


class PerformanceCoreException(Exception):
    """Base exception for performance layer errors.

    Carries a stable error code and structured details so callers can log
    or translate failures without parsing messages.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class PersistenceException(PerformanceCoreException):
    """Raised by durable stores when a snapshot cannot be written."""

    def __init__(
        self,
        message: str = "Durable store write failed",
        key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {}
        if key:
            details["key"] = key
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="PERSISTENCE_ERROR", details=details
        )
        if original_error:
            self.__cause__ = original_error


class InvalidScheduleException(PerformanceCoreException):
    """Raised when a background task schedule cannot be armed."""

    def __init__(self, message: str, schedule: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="INVALID_SCHEDULE",
            details={"schedule": schedule} if schedule else {},
        )


class TaskNotFoundException(PerformanceCoreException):
    """Raised when a background task id is not registered."""

    def __init__(self, task_id: str):
        super().__init__(
            message=f"Background task not found: {task_id}",
            error_code="TASK_NOT_FOUND",
            details={"task_id": task_id},
        )


class PoolNotFoundException(PerformanceCoreException):
    """Raised when a memory pool handle does not belong to the manager."""

    def __init__(self, pool_id: str):
        super().__init__(
            message=f"Memory pool not found: {pool_id}",
            error_code="POOL_NOT_FOUND",
            details={"pool_id": pool_id},
        )


class LoadTimeoutException(PerformanceCoreException):
    """Raised when a paginated fetch exceeds the configured timeout."""

    def __init__(self, offset: int, limit: int, timeout_seconds: float):
        super().__init__(
            message=(
                f"Page fetch at offset {offset} (limit {limit}) "
                f"timed out after {timeout_seconds}s"
            ),
            error_code="LOAD_TIMEOUT",
            details={
                "offset": offset,
                "limit": limit,
                "timeout_seconds": timeout_seconds,
            },
        )
