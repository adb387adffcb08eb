"""Scheduling engine: periods, period resolution and the scheduler loop."""

from __future__ import annotations

from .period import Period, parse_days, parse_time
from .period_matcher import PeriodMatcher
from .schedule_loader import FileScheduleUpdater, ScheduleDocumentError, build_schedule
from .scheduler import (
    ScheduleConfigurationError,
    Scheduler,
    ScheduleUpdateError,
    ZoneSchedulerError,
)

__all__ = [
    "FileScheduleUpdater",
    "Period",
    "PeriodMatcher",
    "ScheduleConfigurationError",
    "ScheduleDocumentError",
    "ScheduleUpdateError",
    "Scheduler",
    "ZoneSchedulerError",
    "build_schedule",
    "parse_days",
    "parse_time",
]
