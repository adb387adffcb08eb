"""Pydantic schemas for schedule documents."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PeriodSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    start: str = Field(..., min_length=1, description="Start time, e.g. '09:00', '9:00 AM', '0900'")
    end: str = Field(..., min_length=1, description="End time, same formats as start")
    days: str = Field(
        default="MTWTFSS",
        min_length=7,
        max_length=7,
        description="Seven characters, Monday first; a space or a dot clears that day",
    )


class ZoneStatusSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    setpoint: float = Field(..., allow_inf_nan=False)
    dump_priority: int = Field(default=0, ge=0)
    enabled: bool = True
    voting: bool = True


class ScheduleEntrySchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    period: PeriodSchema
    status: ZoneStatusSchema


class ZoneScheduleSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    zone: str = Field(..., min_length=1)
    entries: list[ScheduleEntrySchema] = Field(default_factory=list)


class ScheduleDocument(BaseModel):
    """A complete schedule: every zone's table, replaced as a whole."""

    model_config = ConfigDict(extra="forbid")

    zones: list[ZoneScheduleSchema] = Field(default_factory=list)

    @field_validator("zones")
    @classmethod
    def validate_unique_zones(cls, v: list[ZoneScheduleSchema]) -> list[ZoneScheduleSchema]:
        seen: set[str] = set()
        for zone in v:
            if zone.zone in seen:
                raise ValueError(f"Zone '{zone.zone}' is listed more than once")
            seen.add(zone.zone)
        return v


__all__ = [
    "PeriodSchema",
    "ScheduleDocument",
    "ScheduleEntrySchema",
    "ZoneScheduleSchema",
    "ZoneStatusSchema",
]
