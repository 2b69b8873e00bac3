"""
Background Scheduler Services

Task registration, timer arming and execution for background tasks.
"""

from .background_scheduler import BackgroundScheduler, TaskHandler
from .cron import seconds_until_next

__all__ = ["BackgroundScheduler", "TaskHandler", "seconds_until_next"]
