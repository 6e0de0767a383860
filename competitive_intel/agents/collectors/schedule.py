"""Cron schedule evaluation backed by APScheduler's CronTrigger."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from apscheduler.triggers.cron import CronTrigger

from competitive_intel.exceptions import ConfigurationError


class CronSchedule:
    """
    A standard five-field cron expression.

    Raises ConfigurationError at construction when the expression cannot be
    parsed, so a bad schedule fails at setup instead of at the first tick.

    Usage:
        schedule = CronSchedule("0 */4 * * *")
        schedule.next_fire_time(datetime.now(timezone.utc))
    """

    def __init__(self, expression: str, tz: timezone = timezone.utc):
        self.expression = expression
        self.tz = tz
        try:
            self._trigger = CronTrigger.from_crontab(expression, timezone=tz)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid cron expression '{expression}': {e}") from e

    def next_fire_time(self, after: datetime) -> Optional[datetime]:
        """First fire time strictly after ``after``."""
        if after.tzinfo is None:
            after = after.replace(tzinfo=self.tz)
        return self._trigger.get_next_fire_time(None, after + timedelta(microseconds=1))

    def seconds_until_next(self, now: datetime) -> Optional[float]:
        next_time = self.next_fire_time(now)
        if next_time is None:
            return None
        return max(0.0, (next_time - now).total_seconds())

    def __repr__(self) -> str:
        return f"CronSchedule({self.expression!r})"
