"""
Background Task Domain Module

Task entity, kinds, statuses and schedules.
"""

from .entities import BackgroundTask
from .value_objects import TaskKind, TaskStatus, ScheduleKind, TaskSchedule

__all__ = ["BackgroundTask", "TaskKind", "TaskStatus", "ScheduleKind", "TaskSchedule"]
