"""Value types and collaborator interfaces."""

from __future__ import annotations

from .protocols import Schedule, ScheduleTable, ScheduleUpdater, Thermostat
from .status import Deviation, ZoneStatus

__all__ = [
    "Deviation",
    "Schedule",
    "ScheduleTable",
    "ScheduleUpdater",
    "Thermostat",
    "ZoneStatus",
]
