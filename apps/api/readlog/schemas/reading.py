from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


class ReadingSession(BaseModel):
    """One stored reading session.

    ``start_time`` is either an ISO-8601 instant or the legacy Korean
    12-hour clock string ("오후 10:15:30"). ``date`` is only trustworthy for
    legacy rows. ``duration`` is in seconds.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    user_id: str | None = None
    book_id: str | None = None
    start_time: str
    end_time: str = ""
    duration: int = 0
    date: str = ""


_OUTPUT_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class TimeSlot(BaseModel):
    model_config = _OUTPUT_CONFIG

    hour: int = Field(ge=0, le=22)
    label: str
    count: int = Field(default=0, ge=0)
    total_time: int = Field(default=0, ge=0)
    percentage: float = Field(default=0.0, ge=0.0, le=100.0)


class DayTimePattern(BaseModel):
    model_config = _OUTPUT_CONFIG

    # Display layer reads this as ``dayOfWeek``.
    weekday: int = Field(ge=0, le=6, alias="dayOfWeek")
    day_name: str
    time_slots: tuple[TimeSlot, ...] = ()
    total_sessions: int = Field(default=0, ge=0)
    total_time: int = Field(default=0, ge=0)


class TimePatternAnalysis(BaseModel):
    model_config = _OUTPUT_CONFIG

    overall_time_slots: tuple[TimeSlot, ...]
    day_time_patterns: tuple[DayTimePattern, ...]
    most_active_time_slot: TimeSlot
    most_active_day: DayTimePattern
    average_session_time_by_hour: Mapping[int, float] = Field(
        default_factory=dict, validate_default=True
    )

    @field_validator("average_session_time_by_hour", mode="after")
    @classmethod
    def freeze_averages(cls, value: Mapping[int, float]) -> Mapping[int, float]:
        return MappingProxyType(dict(value))

    @field_serializer("average_session_time_by_hour")
    def dump_averages(self, value: Mapping[int, float]) -> dict[int, float]:
        return dict(value)


class TimePatternAnalyzeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Raw rows; coerced leniently so one broken row never fails the request.
    sessions: list[Any] = Field(default_factory=list, max_length=20_000)
