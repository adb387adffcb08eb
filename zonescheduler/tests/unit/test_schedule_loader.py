"""Unit tests for building schedules out of JSON documents."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from zonescheduler.core.period import Period
from zonescheduler.core.schedule_loader import (
    FileScheduleUpdater,
    ScheduleDocumentError,
    build_schedule,
    parse_document,
)
from zonescheduler.core.scheduler import (
    ScheduleConfigurationError,
    Scheduler,
    ScheduleUpdateError,
)
from zonescheduler.models.status import ZoneStatus

DOCUMENT = {
    "zones": [
        {
            "zone": "Bedroom",
            "entries": [
                {
                    "period": {"name": "Lunch override", "start": "12:00", "end": "1:00 PM",
                               "days": "MTWTF  "},
                    "status": {"setpoint": 68, "voting": False},
                },
                {
                    "period": {"name": "Day", "start": "0900", "end": "17:00",
                               "days": "MTWTF  "},
                    "status": {"setpoint": 70},
                },
            ],
        },
        {"zone": "Office", "entries": []},
    ]
}


@pytest.fixture
def zones(make_zone):
    return {"Bedroom": make_zone("Bedroom"), "Office": make_zone("Office")}


class TestBuildSchedule:
    def test_builds_sorted_tables(self, zones) -> None:
        schedule = build_schedule(DOCUMENT, zones)
        table = schedule[zones["Bedroom"]]
        assert [period.name for period in table] == ["Day", "Lunch override"]
        lunch = Period.parse("Lunch override", "12:00", "13:00", "MTWTF  ")
        assert table[lunch] == ZoneStatus(68.0, enabled=True, voting=False)
        assert schedule[zones["Office"]] == {}

    def test_accepts_json_text(self, zones) -> None:
        schedule = build_schedule(json.dumps(DOCUMENT), zones)
        assert set(schedule) == set(zones.values())

    def test_unknown_zone(self, zones) -> None:
        with pytest.raises(ScheduleDocumentError, match="Unknown zone 'Garage'"):
            build_schedule({"zones": [{"zone": "Garage"}]}, zones)

    def test_bad_time(self, zones) -> None:
        document = {
            "zones": [
                {
                    "zone": "Bedroom",
                    "entries": [
                        {
                            "period": {"name": "Day", "start": "25:99", "end": "17:00"},
                            "status": {"setpoint": 70},
                        }
                    ],
                }
            ]
        }
        with pytest.raises(ScheduleDocumentError, match="bad period 'Day'"):
            build_schedule(document, zones)

    def test_schema_violation(self) -> None:
        with pytest.raises(ScheduleDocumentError, match="Malformed"):
            parse_document({"zones": [{"zone": "Bedroom", "entries": [{"period": {}}]}]})

    def test_duplicate_zone_rejected(self) -> None:
        with pytest.raises(ScheduleDocumentError):
            parse_document({"zones": [{"zone": "Den"}, {"zone": "Den"}]})

    def test_document_error_is_configuration_error(self) -> None:
        assert issubclass(ScheduleDocumentError, ScheduleConfigurationError)
        assert issubclass(ScheduleDocumentError, ValueError)


class TestFileScheduleUpdater:
    def test_reads_document(self, tmp_path: Path, zones) -> None:
        path = tmp_path / "schedule.json"
        path.write_text(json.dumps(DOCUMENT), encoding="utf-8")
        schedule = FileScheduleUpdater(path, zones).update()
        assert len(schedule[zones["Bedroom"]]) == 2

    def test_missing_file_is_io_error(self, tmp_path: Path, zones) -> None:
        updater = FileScheduleUpdater(tmp_path / "missing.json", zones)
        with pytest.raises(ScheduleUpdateError):
            updater.update()
        with pytest.raises(OSError):
            updater.update()

    def test_invalid_json(self, tmp_path: Path, zones) -> None:
        path = tmp_path / "schedule.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ScheduleDocumentError, match="not valid JSON"):
            FileScheduleUpdater(path, zones).update()

    def test_drives_scheduler(self, tmp_path: Path, zones, settings, at) -> None:
        path = tmp_path / "schedule.json"
        path.write_text(json.dumps(DOCUMENT), encoding="utf-8")
        scheduler = Scheduler(
            FileScheduleUpdater(path, zones), settings=settings, clock=lambda: at(0, 12, 30)
        )
        scheduler.tick()
        assert zones["Bedroom"].received == [ZoneStatus(68.0, voting=False)]
        assert zones["Office"].received == []

    def test_broken_file_keeps_previous_schedule(
        self, tmp_path: Path, zones, settings, at
    ) -> None:
        path = tmp_path / "schedule.json"
        path.write_text(json.dumps(DOCUMENT), encoding="utf-8")
        scheduler = Scheduler(
            FileScheduleUpdater(path, zones), settings=settings, clock=lambda: at(0, 10)
        )
        scheduler.tick()
        path.write_text("{not json", encoding="utf-8")
        scheduler.tick()
        assert zones["Bedroom"] in scheduler.schedule
        assert zones["Bedroom"].received == [ZoneStatus(70.0)]
