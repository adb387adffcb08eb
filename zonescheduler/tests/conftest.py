import sys
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[2]
if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))

from zonescheduler.config import Settings  # noqa: E402
from zonescheduler.models.status import ZoneStatus  # noqa: E402

# Monday 2026-02-16, the rest of the week follows
MONDAY = datetime(2026, 2, 16)


class FakeThermostat:
    """Zone double that records every status pushed to it."""

    def __init__(self, name: str, *, fail_with: Exception | None = None) -> None:
        self.name = name
        self.fail_with = fail_with
        self.received: list[ZoneStatus] = []

    def set(self, status: ZoneStatus) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.received.append(status)

    def __repr__(self) -> str:
        return f"FakeThermostat({self.name!r})"


@pytest.fixture
def make_zone() -> Callable[..., FakeThermostat]:
    def _make(name: str = "Living Room", **kwargs: object) -> FakeThermostat:
        return FakeThermostat(name, **kwargs)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def settings() -> Settings:
    return Settings(
        schedule_granularity_ms=60_000,
        startup_delay_ms=10_000,
        updater_timeout_s=2.0,
    )


@pytest.fixture
def at() -> Callable[..., datetime]:
    """Build a timestamp in the reference week: ``at(0, 12, 30)`` is Monday 12:30."""

    def _at(weekday: int, hour: int, minute: int = 0) -> datetime:
        return MONDAY.replace(day=MONDAY.day + weekday, hour=hour, minute=minute)

    return _at
