"""Structural interfaces for the collaborators the scheduler drives."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol, TypeAlias, runtime_checkable

from .status import ZoneStatus

if TYPE_CHECKING:
    from zonescheduler.core.period import Period


@runtime_checkable
class Thermostat(Protocol):
    """Anything that can be told to adopt a :class:`ZoneStatus`.

    Instances are used as mapping keys, so they must hash and compare by a
    stable identity. The scheduler visits zones in ascending ``name`` order.
    """

    @property
    def name(self) -> str: ...

    def set(self, status: ZoneStatus) -> None: ...


ScheduleTable: TypeAlias = "Mapping[Period, ZoneStatus]"
Schedule: TypeAlias = "Mapping[Thermostat, ScheduleTable]"


@runtime_checkable
class ScheduleUpdater(Protocol):
    """Source of complete replacement schedules.

    ``update()`` returns the whole zone -> table mapping, never a delta.
    I/O-class failures are reported by raising ``OSError`` (or a subclass).
    """

    def update(self) -> Schedule: ...


__all__ = ["Schedule", "ScheduleTable", "ScheduleUpdater", "Thermostat"]
