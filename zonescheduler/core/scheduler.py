"""Apply per-zone schedules on a fixed cadence.

The scheduler owns the live schedule (zone -> period -> status), remembers
what it last pushed to every zone, and only talks to a zone when the status
selected for it changes. Other components may query the current status,
period, or deviation from schedule at any time; a single lock keeps those
queries consistent with a tick running in the background.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timedelta

from apscheduler.schedulers.background import BackgroundScheduler  # type: ignore[import-untyped]
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore[import-untyped]

from zonescheduler.config import Settings, get_settings
from zonescheduler.models.protocols import Schedule, ScheduleTable, ScheduleUpdater, Thermostat
from zonescheduler.models.status import Deviation, ZoneStatus

from .period import Period
from .period_matcher import PeriodMatcher

logger = logging.getLogger(__name__)

TICK_JOB_ID = "zone_scheduler_tick"


class ZoneSchedulerError(Exception):
    """Base class for scheduler errors."""


class ScheduleConfigurationError(ZoneSchedulerError):
    """Raised when the schedule source breaks its contract."""


class ScheduleUpdateError(OSError, ZoneSchedulerError):
    """Raised when a replacement schedule couldn't be fetched."""


def _zone_name(zone: Thermostat) -> str:
    return getattr(zone, "name", None) or repr(zone)


class Scheduler:
    """Drive zones from a weekly schedule.

    Both ``updater`` and ``schedule`` are optional. Without either the
    scheduler idles with an empty schedule until one is supplied.
    """

    def __init__(
        self,
        updater: ScheduleUpdater | None = None,
        schedule: Schedule | None = None,
        *,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._updater = updater
        self._clock = clock or datetime.now
        self._matcher = PeriodMatcher()
        self._lock = threading.RLock()
        self._schedule: dict[Thermostat, dict[Period, ZoneStatus]] = {}
        self._current_status: dict[Thermostat, ZoneStatus] = {}
        self._current_period: dict[Thermostat, Period] = {}
        self._background: BackgroundScheduler | None = None
        self._updater_executor: ThreadPoolExecutor | None = None
        self._pending_update: Future[Schedule | None] | None = None

        if schedule is None:
            if updater is None:
                logger.warning("No schedule and no updater given, scheduler will stay idle")
            return
        self.replace_schedule(schedule)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def schedule_granularity_ms(self) -> int:
        """Schedule check and execution granularity, in milliseconds."""
        return self._settings.schedule_granularity_ms

    @property
    def running(self) -> bool:
        return self._background is not None and self._background.running

    def start(self) -> None:
        """Begin periodic execution.

        The first tick fires after the startup delay so that sensors and
        actuators get a chance to settle.
        """

        if self.running:
            logger.warning("Scheduler already started, ignored")
            return

        first_run = datetime.now().astimezone() + timedelta(
            milliseconds=self._settings.startup_delay_ms
        )
        background = BackgroundScheduler(
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": self._settings.misfire_grace_time_s,
            },
        )
        background.add_job(
            self.tick,
            IntervalTrigger(
                seconds=self.schedule_granularity_ms / 1000,
                start_date=first_run,
            ),
            id=TICK_JOB_ID,
            name="Zone Schedule Tick",
            replace_existing=True,
        )
        background.start()
        self._background = background
        logger.info(
            "Scheduler started: every %d ms, first run at %s",
            self.schedule_granularity_ms,
            first_run.isoformat(timespec="seconds"),
        )

    def stop(self) -> None:
        """Stop scheduling future ticks. A tick already running is left to finish."""

        executor, self._updater_executor = self._updater_executor, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

        background, self._background = self._background, None
        if background is None:
            return
        if background.running:
            background.shutdown(wait=False)
        logger.info("Scheduler stopped")

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def tick(self) -> None:
        """One pass: refresh the schedule if possible, then apply it to every zone.

        Nothing escapes this method, an exception leaking into the background
        scheduler would be logged there and forgotten.
        """

        logger.info("Checking schedule")
        try:
            try:
                self.update()
            except ScheduleConfigurationError:
                logger.critical(
                    "Schedule refresh failed, keeping the previous schedule", exc_info=True
                )
            except Exception:
                logger.exception("Unexpected error refreshing schedule, keeping the previous one")
            self.execute()
        except Exception:
            logger.exception("Unexpected error during schedule tick")
        finally:
            logger.info("done")

    def update(self) -> None:
        """Fetch a complete replacement schedule from the updater and swap it in.

        I/O failures are logged and leave the current schedule in force. An
        updater returning nothing raises :class:`ScheduleConfigurationError`.
        """

        if self._updater is None:
            logger.debug("No updater specified, doing nothing")
            return

        pending = self._pending_update
        if pending is not None and not pending.done():
            logger.warning("Previous schedule update still running, refresh skipped")
            return

        try:
            new_schedule = self._fetch_schedule(self._updater)
        except OSError:
            logger.error("Schedule update failed", exc_info=True)
            return

        if new_schedule is None:
            raise ScheduleConfigurationError(
                f"Bad updater implementation {type(self._updater).__name__} returned None"
            )
        self.replace_schedule(new_schedule)

    def _fetch_schedule(self, updater: ScheduleUpdater) -> Schedule | None:
        timeout = self._settings.updater_timeout_s
        if self._updater_executor is None:
            self._updater_executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="schedule-updater"
            )
        future = self._updater_executor.submit(updater.update)
        self._pending_update = future
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as exc:
            # The call keeps its worker until it returns; update() won't submit another
            raise ScheduleUpdateError(f"Schedule updater timed out after {timeout}s") from exc

    def replace_schedule(self, schedule: Schedule) -> None:
        """Discard the current schedule entirely and install ``schedule``."""

        fresh = {zone: dict(table) for zone, table in schedule.items()}
        with self._lock:
            dropped = [zone for zone in self._schedule if zone not in fresh]
            self._schedule = fresh
            for zone in dropped:
                self._current_status.pop(zone, None)
                self._current_period.pop(zone, None)
        if dropped:
            logger.info(
                "Dropped zones no longer scheduled: %s",
                ", ".join(sorted(_zone_name(zone) for zone in dropped)),
            )
        logger.debug("Schedule replaced, %d zone(s)", len(fresh))

    def execute(self, now: datetime | None = None) -> None:
        """Apply the schedule to every zone, isolating failures per zone."""

        now = now or self._clock()
        with self._lock:
            zones = sorted(self._schedule.items(), key=lambda item: _zone_name(item[0]))

        for zone, table in zones:
            try:
                with self._lock:
                    if self._schedule.get(zone) is not table:
                        # Replaced since the snapshot, the next run uses the new table
                        logger.debug("%s: schedule replaced, skipped", _zone_name(zone))
                        continue
                    self.apply(zone, table, now)
            except Exception:
                logger.exception(
                    "%s: failed to set schedule, will retry on next run",
                    _zone_name(zone),
                    extra={"zone": _zone_name(zone)},
                )

    def apply(self, zone: Thermostat, table: ScheduleTable, now: datetime | int | float) -> None:
        """Push the status in force at ``now`` to ``zone`` unless it's already there."""

        name = _zone_name(zone)
        with self._lock:
            if zone not in self._schedule:
                logger.debug("%s: not in the schedule, nothing to apply", name)
                return
            period = self._matcher.match(table, now)
            if period is None:
                logger.info("%s: no active period found", name, extra={"zone": name})
                self._current_status.pop(zone, None)
                self._current_period.pop(zone, None)
                return

            status = table[period]
            if status == self._current_status.get(zone):
                return

            zone.set(status)
            if zone not in self._schedule:
                # set() itself replaced the schedule and dropped this zone
                return
            self._current_status[zone] = status
            self._current_period[zone] = period
            logger.info("%s set to %s (%s)", name, status, period, extra={"zone": name})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def schedule(self) -> dict[Thermostat, dict[Period, ZoneStatus]]:
        with self._lock:
            return {zone: dict(table) for zone, table in self._schedule.items()}

    def get_current_status(self, zone: Thermostat) -> ZoneStatus | None:
        with self._lock:
            return self._current_status.get(zone)

    def get_current_period(self, zone: Thermostat) -> Period | None:
        with self._lock:
            return self._current_period.get(zone)

    def get_deviation(
        self,
        zone: Thermostat,
        setpoint: float,
        enabled: bool,
        voting: bool,
        timestamp: datetime | int | float | None = None,
    ) -> Deviation:
        """Compare actual zone settings against the schedule at ``timestamp``.

        Independent of what was last applied. A zone without a schedule, or
        without a period in force, deviates by nothing.
        """

        name = _zone_name(zone)
        when = timestamp if timestamp is not None else self._clock()
        with self._lock:
            table: Mapping[Period, ZoneStatus] | None = self._schedule.get(zone)
            if table is None:
                logger.debug("No schedule found for %s (yet?)", name)
                return Deviation.none()
            period = self._matcher.match(table, when)
            if period is None:
                logger.debug("%s: no active period found", name)
                return Deviation.none()
            scheduled = table[period]

        if (
            scheduled.setpoint == setpoint
            and scheduled.enabled == enabled
            and scheduled.voting == voting
        ):
            logger.debug("%s: on schedule", name)
            return Deviation.none()

        result = Deviation(
            setpoint=scheduled.setpoint - setpoint,
            enabled=scheduled.enabled != enabled,
            voting=scheduled.voting != voting,
        )
        logger.debug(
            "%s: scheduled %s, actual setpoint=%s, deviation %s", name, scheduled, setpoint, result
        )
        return result


__all__ = [
    "ScheduleConfigurationError",
    "ScheduleUpdateError",
    "Scheduler",
    "ZoneSchedulerError",
]
