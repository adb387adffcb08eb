"""Zone status and deviation value types."""

from __future__ import annotations

import math
from dataclasses import dataclass


def _format_setpoint(value: float) -> str:
    text = f"{value:.4f}".rstrip("0")
    if text.endswith("."):
        text += "0"
    return "0.0" if text in ("-0.0", "0.0") else text


@dataclass(frozen=True, slots=True)
class ZoneStatus:
    """Settings a zone is told to adopt while a period is active."""

    setpoint: float
    dump_priority: int = 0
    enabled: bool = True
    voting: bool = True

    def __post_init__(self) -> None:
        if not math.isfinite(self.setpoint):
            raise ValueError(f"Invalid setpoint {self.setpoint}")
        if self.dump_priority < 0:
            raise ValueError(f"Dump priority must be non-negative, got {self.dump_priority}")

    def __str__(self) -> str:
        parts = [
            f"setpoint={_format_setpoint(self.setpoint)}",
            "enabled" if self.enabled else "disabled",
            "voting" if self.voting else "not voting",
        ]
        if self.dump_priority:
            parts.append(f"dump priority={self.dump_priority}")
        return ", ".join(parts)


@dataclass(frozen=True, slots=True)
class Deviation:
    """Difference between the scheduled status of a zone and its actual settings.

    ``setpoint`` is scheduled minus actual, so a zone running 2 degrees above
    its schedule reports ``-2``. ``enabled`` and ``voting`` are true when the
    corresponding flag differs from the schedule.
    """

    setpoint: float = 0.0
    enabled: bool = False
    voting: bool = False

    @classmethod
    def none(cls) -> Deviation:
        return cls(0.0, False, False)

    @property
    def deviates(self) -> bool:
        return self.setpoint != 0 or self.enabled or self.voting

    def __str__(self) -> str:
        text = f"(setpoint deviation={_format_setpoint(self.setpoint)}"
        if self.enabled:
            text += ", enabled differs"
        if self.voting:
            text += ", voting differs"
        return text + ")"


__all__ = ["Deviation", "ZoneStatus"]
