"""
Cron Evaluation

Next-firing computation for cron schedules using croniter.
"""

from datetime import datetime
from typing import Optional

from croniter import croniter

from ...constants import get_current_timestamp


def seconds_until_next(expression: str, now: Optional[datetime] = None) -> float:
    """
    Seconds from ``now`` (UTC) until the next time ``expression`` matches.

    Args:
        expression: Standard five-field cron expression
        now: Reference time, defaults to the current UTC time

    Returns:
        Non-negative delay in seconds
    """
    base = now or get_current_timestamp()
    next_fire = croniter(expression, base).get_next(datetime)
    return max(0.0, (next_fire - base).total_seconds())
