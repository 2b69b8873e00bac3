"""
Background Task Entities

Task entity owned by the background scheduler. Status transitions are
only driven by the scheduler's execution loop.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Union
from uuid import uuid4

from ...constants import TASK_PROGRESS_MAX, TASK_PROGRESS_MIN, get_current_timestamp
from ..cache.value_objects import Priority
from .value_objects import TaskKind, TaskSchedule, TaskStatus


@dataclass
class BackgroundTask:
    """
    Background task entity.

    State machine: PENDING -> RUNNING -> COMPLETED | FAILED. Repeating
    schedules move back to RUNNING on each firing.
    """

    name: str
    description: str
    kind: Union[TaskKind, str]
    schedule: TaskSchedule
    priority: Priority = Priority.MEDIUM
    id: str = field(default_factory=lambda: uuid4().hex)
    status: TaskStatus = TaskStatus.PENDING
    progress: int = TASK_PROGRESS_MIN
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    result: Any = None
    run_count: int = 0

    def __post_init__(self) -> None:
        """Validate task data."""
        if not self.name:
            raise ValueError("Task name cannot be empty")
        self.kind = TaskKind.parse(self.kind)
        self.priority = Priority.parse(self.priority)

    @property
    def is_running(self) -> bool:
        return self.status == TaskStatus.RUNNING

    def mark_running(self, now: Optional[datetime] = None) -> None:
        """Enter RUNNING and reset per-run fields."""
        self.status = TaskStatus.RUNNING
        self.started_at = now or get_current_timestamp()
        self.completed_at = None
        self.progress = TASK_PROGRESS_MIN
        self.error = None
        self.result = None
        self.run_count += 1

    def mark_completed(self, result: Any = None, now: Optional[datetime] = None) -> None:
        """Finish the current run successfully."""
        self.status = TaskStatus.COMPLETED
        self.progress = TASK_PROGRESS_MAX
        self.result = result
        self.completed_at = now or get_current_timestamp()

    def mark_failed(self, error: str, now: Optional[datetime] = None) -> None:
        """Finish the current run with an error."""
        self.status = TaskStatus.FAILED
        self.error = error
        self.completed_at = now or get_current_timestamp()

    def report_progress(self, progress: int) -> None:
        """Update progress of the running task, clamped to 0-100."""
        self.progress = max(TASK_PROGRESS_MIN, min(TASK_PROGRESS_MAX, int(progress)))

    def disable(self) -> None:
        """Disable future firings of this task."""
        self.schedule = self.schedule.model_copy(update={"enabled": False})

    def to_snapshot(self) -> Dict[str, Any]:
        """Serialize task state for persistence."""
        kind = self.kind.value if isinstance(self.kind, TaskKind) else self.kind
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "kind": kind,
            "schedule": self.schedule.model_dump(mode="json"),
            "priority": self.priority.name.lower(),
            "status": self.status.value,
            "progress": self.progress,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            "error": self.error,
            "run_count": self.run_count,
        }
