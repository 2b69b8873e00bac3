"""
Background Task Value Objects

Task kinds, statuses and schedules for the background scheduler.
"""

from enum import Enum
from typing import Optional, Union

from croniter import croniter
from pydantic import BaseModel, ConfigDict, Field, model_validator


class TaskKind(str, Enum):
    """Built-in background task kinds."""

    CLEANUP = "cleanup"
    OPTIMIZATION = "optimization"
    PREPROCESSING = "preprocessing"
    INDEXING = "indexing"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: Union["TaskKind", str]) -> Union["TaskKind", str]:
        """Map a kind name onto TaskKind, keeping unrecognised names verbatim."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return str(value)


class TaskStatus(str, Enum):
    """Task execution status.

    CANCELLED is reserved: no scheduler transition reaches it.
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ScheduleKind(str, Enum):
    """How a task is armed on the timer."""

    IMMEDIATE = "immediate"
    INTERVAL = "interval"
    ONCE = "once"
    CRON = "cron"


class TaskSchedule(BaseModel):
    """
    Task schedule.

    ``value`` is interpreted by kind: seconds between runs for INTERVAL,
    delay in seconds for ONCE, a five-field cron expression for CRON and
    ignored for IMMEDIATE.
    """

    model_config = ConfigDict(frozen=True)

    kind: ScheduleKind = Field(..., description="Schedule kind")
    value: Optional[Union[float, str]] = Field(
        None, description="Interval/delay seconds or cron expression"
    )
    enabled: bool = Field(default=True, description="Arm the task on registration")

    @model_validator(mode="after")
    def validate_value(self) -> "TaskSchedule":
        """Validate ``value`` against the schedule kind."""
        if self.kind == ScheduleKind.IMMEDIATE:
            return self

        if self.kind == ScheduleKind.CRON:
            if not isinstance(self.value, str) or not croniter.is_valid(self.value):
                raise ValueError(f"Invalid cron expression: {self.value!r}")
            return self

        seconds = self.seconds
        if self.kind == ScheduleKind.INTERVAL and seconds <= 0:
            raise ValueError("Interval schedule requires a positive value")
        if self.kind == ScheduleKind.ONCE and seconds < 0:
            raise ValueError("Once schedule delay cannot be negative")
        return self

    @property
    def seconds(self) -> float:
        """Numeric value in seconds for INTERVAL and ONCE schedules."""
        if self.value is None:
            raise ValueError(f"{self.kind.value} schedule requires a value")
        try:
            return float(self.value)
        except (TypeError, ValueError):
            raise ValueError(
                f"{self.kind.value} schedule value must be numeric, got {self.value!r}"
            ) from None

    @classmethod
    def immediate(cls, enabled: bool = True) -> "TaskSchedule":
        return cls(kind=ScheduleKind.IMMEDIATE, enabled=enabled)

    @classmethod
    def interval(cls, seconds: float, enabled: bool = True) -> "TaskSchedule":
        return cls(kind=ScheduleKind.INTERVAL, value=seconds, enabled=enabled)

    @classmethod
    def once(cls, delay_seconds: float, enabled: bool = True) -> "TaskSchedule":
        return cls(kind=ScheduleKind.ONCE, value=delay_seconds, enabled=enabled)

    @classmethod
    def cron(cls, expression: str, enabled: bool = True) -> "TaskSchedule":
        return cls(kind=ScheduleKind.CRON, value=expression, enabled=enabled)
