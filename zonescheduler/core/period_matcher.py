"""Pick the active period out of a zone's schedule table."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from .period import Period

logger = logging.getLogger(__name__)


class PeriodMatcher:
    """Resolve the single period in force at a given moment.

    Among the periods eligible on the timestamp's day and covering its time of
    day, the one that sorts last under :meth:`Period.compare` wins: later
    starts override earlier ones, and at equal starts the narrower window
    overrides the broader one. Periods that sort equal are settled by table
    order, the last one wins.
    """

    def match(
        self, periods: Iterable[Period], timestamp: datetime | int | float
    ) -> Period | None:
        best: Period | None = None
        best_key: tuple[int, int] | None = None
        for period in periods:
            if not period.matches(timestamp):
                continue
            key = period.sort_key
            if best_key is None or key >= best_key:
                best, best_key = period, key

        if best is None:
            logger.debug("No period matches %s", timestamp)
        else:
            logger.debug("Matched %s at %s", best, timestamp)
        return best


__all__ = ["PeriodMatcher"]
