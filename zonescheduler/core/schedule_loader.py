"""Build schedules out of JSON documents."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from zonescheduler.models.protocols import Schedule, Thermostat
from zonescheduler.models.schemas import ScheduleDocument, ZoneScheduleSchema
from zonescheduler.models.status import ZoneStatus

from .period import Period
from .scheduler import ScheduleConfigurationError, ScheduleUpdateError

logger = logging.getLogger(__name__)


class ScheduleDocumentError(ScheduleConfigurationError, ValueError):
    """Raised when a schedule document can't be turned into a schedule."""


def parse_document(payload: str | bytes | Mapping[str, Any]) -> ScheduleDocument:
    try:
        if isinstance(payload, (str, bytes)):
            return ScheduleDocument.model_validate_json(payload)
        return ScheduleDocument.model_validate(payload)
    except ValidationError as exc:
        raise ScheduleDocumentError(f"Malformed schedule document: {exc}") from exc


def build_table(zone_schedule: ZoneScheduleSchema) -> dict[Period, ZoneStatus]:
    """Return one zone's table, ordered by period."""

    table: dict[Period, ZoneStatus] = {}
    for entry in zone_schedule.entries:
        try:
            period = Period.parse(
                entry.period.name, entry.period.start, entry.period.end, entry.period.days
            )
        except ValueError as exc:
            raise ScheduleDocumentError(
                f"{zone_schedule.zone}: bad period '{entry.period.name}': {exc}"
            ) from exc
        if period in table:
            logger.warning("%s: duplicate period %s, last one wins", zone_schedule.zone, period)
        table[period] = ZoneStatus(
            setpoint=entry.status.setpoint,
            dump_priority=entry.status.dump_priority,
            enabled=entry.status.enabled,
            voting=entry.status.voting,
        )
    return dict(sorted(table.items(), key=lambda item: item[0].sort_key))


def build_schedule(
    document: ScheduleDocument | str | bytes | Mapping[str, Any],
    zones: Mapping[str, Thermostat],
) -> Schedule:
    """Resolve zone names against ``zones`` and build every table in ``document``."""

    if not isinstance(document, ScheduleDocument):
        document = parse_document(document)

    schedule: dict[Thermostat, dict[Period, ZoneStatus]] = {}
    for zone_schedule in document.zones:
        zone = zones.get(zone_schedule.zone)
        if zone is None:
            raise ScheduleDocumentError(f"Unknown zone '{zone_schedule.zone}'")
        schedule[zone] = build_table(zone_schedule)
    return schedule


class FileScheduleUpdater:
    """Read the whole schedule from a JSON file on every call."""

    def __init__(self, path: str | Path, zones: Mapping[str, Thermostat]) -> None:
        self.path = Path(path)
        self._zones = dict(zones)

    def update(self) -> Schedule:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ScheduleUpdateError(f"Can't read schedule from {self.path}: {exc}") from exc

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ScheduleDocumentError(f"{self.path} is not valid JSON: {exc}") from exc

        schedule = build_schedule(payload, self._zones)
        logger.debug("Loaded schedule for %d zone(s) from %s", len(schedule), self.path)
        return schedule


__all__ = [
    "FileScheduleUpdater",
    "ScheduleDocumentError",
    "build_schedule",
    "build_table",
    "parse_document",
]
