"""
Background Scheduler

Registers background tasks, arms them on a Timer according to their
schedule and runs them on the event loop. Provides kind-based dispatch,
per-task handlers and optional snapshot persistence of the task table.
"""

import functools
import inspect
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import structlog
from opentelemetry import trace
from pydantic import ValidationError

from ...constants import BACKGROUND_TASKS_SNAPSHOT_KEY, get_current_timestamp
from ...core.config import get_settings
from ...domain.cache.repository_interfaces import DurableStoreInterface
from ...domain.cache.value_objects import Priority
from ...domain.tasks.entities import BackgroundTask
from ...domain.tasks.value_objects import (
    ScheduleKind,
    TaskKind,
    TaskSchedule,
    TaskStatus,
)
from ...exceptions import InvalidScheduleException, TaskNotFoundException
from ...infrastructure.repositories.durable_store import FileDurableStore
from ...infrastructure.snapshot_writer import SnapshotWriter
from ...infrastructure.timing.asyncio_timer import AsyncioTimer
from ...infrastructure.timing.interfaces import Timer, TimerHandle
from ...monitoring.metrics import background_task_runs_total
from ..cache.cache_manager import CacheManager
from .cron import seconds_until_next

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

TaskHandler = Callable[[BackgroundTask], Union[Any, Awaitable[Any]]]

# Kinds that are valid extension points but do nothing without a handler
_EXTENSION_KINDS = frozenset(
    {TaskKind.OPTIMIZATION.value, TaskKind.PREPROCESSING.value, TaskKind.INDEXING.value}
)


def _kind_key(kind: Union[TaskKind, str]) -> str:
    return kind.value if isinstance(kind, TaskKind) else str(kind)


class BackgroundScheduler:
    """
    Background task scheduler.

    Each task is armed on registration when its schedule is enabled:
    immediate and once schedules fire a single time, interval schedules
    repeat, cron schedules are re-armed after every run from the current
    UTC time. A firing that arrives while the same task is still running
    is skipped. Task bodies are never cancelled mid-run; disable() only
    stops future firings.
    """

    def __init__(
        self,
        *,
        timer: Optional[Timer] = None,
        cache_manager: Optional[CacheManager] = None,
        durable_store: Optional[DurableStoreInterface] = None,
        persistence_enabled: Optional[bool] = None,
        compress: Optional[bool] = None,
        wall_clock: Callable[[], datetime] = get_current_timestamp,
    ):
        """
        Initialize background scheduler.

        Args:
            timer: Timer used to arm schedules
            cache_manager: Cache swept by cleanup tasks
            durable_store: Sink for task table snapshots
            persistence_enabled: Persist task table snapshots (settings default)
            compress: Gzip snapshots (settings default)
            wall_clock: UTC time source for cron evaluation
        """
        settings = get_settings()
        if persistence_enabled is None:
            persistence_enabled = settings.TASK_PERSISTENCE_ENABLED
        if compress is None:
            compress = settings.CACHE_COMPRESSION_ENABLED

        self._timer = timer or AsyncioTimer()
        self.cache_manager = cache_manager
        self._wall_clock = wall_clock

        self._tasks: Dict[str, BackgroundTask] = {}
        self._handles: Dict[str, TimerHandle] = {}
        self._task_handlers: Dict[str, TaskHandler] = {}
        self._kind_handlers: Dict[str, TaskHandler] = {}
        self._disposed = False

        self._snapshot_writer: Optional[SnapshotWriter] = None
        if persistence_enabled:
            store = durable_store or FileDurableStore(settings.CACHE_PERSISTENCE_PATH)
            self._snapshot_writer = SnapshotWriter(
                store,
                BACKGROUND_TASKS_SNAPSHOT_KEY,
                self._snapshot_records,
                compress=compress,
            )

    # Registration

    def register(
        self,
        name: str,
        description: str,
        kind: Union[TaskKind, str],
        schedule: Union[TaskSchedule, Dict[str, Any]],
        priority: Union[Priority, str, int] = Priority.MEDIUM,
        handler: Optional[TaskHandler] = None,
    ) -> BackgroundTask:
        """
        Register a background task and arm it if its schedule is enabled.

        Args:
            name: Task name
            description: Human readable description
            kind: Task kind; unrecognised kinds are kept and run as no-ops
            schedule: TaskSchedule or its dict form
            priority: Task priority
            handler: Body for this task; required for custom tasks

        Returns:
            The registered task in PENDING state

        Raises:
            InvalidScheduleException: If the schedule cannot be armed
        """
        schedule = self._coerce_schedule(schedule)

        task = BackgroundTask(
            name=name,
            description=description,
            kind=kind,
            schedule=schedule,
            priority=priority,
        )
        self._tasks[task.id] = task
        if handler is not None:
            self._task_handlers[task.id] = handler

        if schedule.enabled and not self._disposed:
            self._arm(task)

        logger.info(
            "background_task_registered",
            task_id=task.id,
            name=task.name,
            kind=_kind_key(task.kind),
            schedule=schedule.kind.value,
            enabled=schedule.enabled,
        )
        self._schedule_persist()
        return task

    def register_handler(self, kind: Union[TaskKind, str], handler: TaskHandler) -> None:
        """Set the handler used for every task of ``kind`` without its own handler."""
        key = _kind_key(TaskKind.parse(kind))
        self._kind_handlers[key] = handler
        logger.debug("background_task_handler_registered", kind=key)

    def list(self) -> List[BackgroundTask]:
        """All registered tasks in registration order."""
        return list(self._tasks.values())

    def get(self, task_id: str) -> BackgroundTask:
        """
        Get a task by id.

        Raises:
            TaskNotFoundException: If the id is not registered
        """
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundException(task_id)
        return task

    def disable(self, task_id: str) -> BackgroundTask:
        """Stop future firings of a task. A run in progress is not interrupted."""
        task = self.get(task_id)
        task.disable()
        self._disarm(task_id)
        logger.info("background_task_disabled", task_id=task_id, name=task.name)
        self._schedule_persist()
        return task

    async def run_now(self, task_id: str) -> BackgroundTask:
        """
        Run a task immediately, regardless of its schedule.

        Returns:
            The task after the run finished, or unchanged if it was already
            running
        """
        task = self.get(task_id)
        if task.is_running:
            logger.warning("background_task_already_running", task_id=task_id)
            return task

        await self._execute(task)
        return task

    # Lifecycle

    def dispose(self) -> None:
        """Cancel every armed schedule. Registered tasks stay listable."""
        for task_id in list(self._handles):
            self._disarm(task_id)
        self._disposed = True
        logger.info("background_scheduler_disposed", tasks=len(self._tasks))

    async def close(self) -> None:
        """Dispose and wait for outstanding snapshot writes."""
        self.dispose()
        await self.flush()

    async def flush(self) -> None:
        """Wait for outstanding snapshot writes to finish."""
        if self._snapshot_writer is not None:
            await self._snapshot_writer.flush()

    # Arming

    def _coerce_schedule(
        self, schedule: Union[TaskSchedule, Dict[str, Any]]
    ) -> TaskSchedule:
        if isinstance(schedule, TaskSchedule):
            return schedule

        try:
            return TaskSchedule.model_validate(schedule)
        except ValidationError as e:
            raise InvalidScheduleException(
                f"Invalid task schedule: {e.errors()[0]['msg']}",
                schedule=dict(schedule) if isinstance(schedule, dict) else None,
            ) from e

    def _arm(self, task: BackgroundTask) -> None:
        schedule = task.schedule
        callback = functools.partial(self._run_scheduled, task.id)

        if schedule.kind == ScheduleKind.IMMEDIATE:
            handle = self._timer.after(0, callback)
        elif schedule.kind == ScheduleKind.ONCE:
            handle = self._timer.after(schedule.seconds, callback)
        elif schedule.kind == ScheduleKind.INTERVAL:
            handle = self._timer.every(schedule.seconds, callback)
        elif schedule.kind == ScheduleKind.CRON:
            delay = seconds_until_next(str(schedule.value), self._wall_clock())
            handle = self._timer.after(delay, callback)
        else:
            raise InvalidScheduleException(
                f"Unsupported schedule kind: {schedule.kind}",
                schedule=schedule.model_dump(mode="json"),
            )

        self._handles[task.id] = handle

    def _disarm(self, task_id: str) -> None:
        handle = self._handles.pop(task_id, None)
        if handle is not None:
            self._timer.cancel(handle)

    async def _run_scheduled(self, task_id: str) -> None:
        task = self._tasks.get(task_id)
        if task is None or not task.schedule.enabled:
            return

        if task.schedule.kind in (ScheduleKind.IMMEDIATE, ScheduleKind.ONCE):
            self._handles.pop(task_id, None)

        if task.is_running:
            logger.warning(
                "background_task_firing_skipped",
                task_id=task_id,
                name=task.name,
                reason="still_running",
            )
        else:
            await self._execute(task)

        if (
            task.schedule.kind == ScheduleKind.CRON
            and task.schedule.enabled
            and not self._disposed
        ):
            self._arm(task)

    # Execution

    def _resolve_handler(self, task: BackgroundTask) -> Optional[TaskHandler]:
        handler = self._task_handlers.get(task.id)
        if handler is not None:
            return handler

        kind = _kind_key(task.kind)
        handler = self._kind_handlers.get(kind)
        if handler is not None:
            return handler

        if kind == TaskKind.CLEANUP.value and self.cache_manager is not None:
            return self._run_cleanup
        return None

    async def _run_cleanup(self, task: BackgroundTask) -> Dict[str, int]:
        removed = await self.cache_manager.sweep()
        return {"expired_removed": removed}

    async def _execute(self, task: BackgroundTask) -> None:
        kind = _kind_key(task.kind)

        with tracer.start_as_current_span("background_scheduler.execute") as span:
            span.set_attribute("task_id", task.id)
            span.set_attribute("task_name", task.name)
            span.set_attribute("task_kind", kind)

            task.mark_running()
            self._schedule_persist()
            logger.debug("background_task_started", task_id=task.id, kind=kind)

            handler = self._resolve_handler(task)
            try:
                if handler is None:
                    result = self._skip_unhandled(task, kind)
                else:
                    result = handler(task)
                    if inspect.isawaitable(result):
                        result = await result
            except Exception as e:
                task.mark_failed(str(e))
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                logger.error(
                    "background_task_failed",
                    task_id=task.id,
                    name=task.name,
                    kind=kind,
                    error=str(e),
                    error_type=type(e).__name__,
                )
            else:
                task.mark_completed(result)
                logger.debug(
                    "background_task_completed",
                    task_id=task.id,
                    kind=kind,
                    run_count=task.run_count,
                )

            span.set_attribute("task_status", task.status.value)
            background_task_runs_total.labels(kind=kind, status=task.status.value).inc()
            self._schedule_persist()

    def _skip_unhandled(self, task: BackgroundTask, kind: str) -> None:
        if kind in _EXTENSION_KINDS:
            logger.info("background_task_no_handler", task_id=task.id, kind=kind)
        else:
            logger.warning(
                "background_task_kind_unhandled",
                task_id=task.id,
                name=task.name,
                kind=kind,
            )
        return None

    # Persistence

    def _schedule_persist(self) -> None:
        if self._snapshot_writer is not None:
            self._snapshot_writer.schedule()

    def _snapshot_records(self) -> List[Dict[str, Any]]:
        return [task.to_snapshot() for task in self._tasks.values()]

    @property
    def running_count(self) -> int:
        """Number of tasks currently in RUNNING state."""
        return sum(1 for task in self._tasks.values() if task.status == TaskStatus.RUNNING)
