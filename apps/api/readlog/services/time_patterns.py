from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from readlog.schemas.reading import (
    DayTimePattern,
    ReadingSession,
    TimePatternAnalysis,
    TimeSlot,
)
from readlog.services.start_time import InvalidStart, local_weekday, parse_start_time
from readlog.services.time_slots import (
    SLOT_HOURS,
    SLOT_LABELS,
    WEEKDAY_NAMES,
    slot_for_hour,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSION_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class ClassifiedSession:
    slot: int
    weekday: int | None
    duration: int


@dataclass
class _SlotTotals:
    count: int = 0
    total_time: int = 0


def _clamp_duration(session: ReadingSession, *, max_seconds: int) -> int:
    duration = session.duration
    if duration < 0:
        logger.debug("Clamping negative duration %s on session %s", duration, session.id)
        return 0
    if duration > max_seconds:
        logger.debug(
            "Clamping duration %s on session %s to %s", duration, session.id, max_seconds
        )
        return max_seconds
    return duration


def classify_sessions(
    sessions: Iterable[ReadingSession],
    *,
    max_session_seconds: int = DEFAULT_MAX_SESSION_SECONDS,
) -> list[ClassifiedSession]:
    """Resolve slot, weekday and usable duration; drop unparseable start times."""
    max_seconds = max(0, int(max_session_seconds))
    out: list[ClassifiedSession] = []
    for session in sessions:
        parsed = parse_start_time(session.start_time)
        if isinstance(parsed, InvalidStart):
            continue
        out.append(
            ClassifiedSession(
                slot=slot_for_hour(parsed.hour),
                weekday=local_weekday(parsed, session.date),
                duration=_clamp_duration(session, max_seconds=max_seconds),
            )
        )
    return out


def _empty_totals() -> dict[int, _SlotTotals]:
    return {hour: _SlotTotals() for hour in SLOT_HOURS}


def _share(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return (part / whole) * 100.0


def build_overall_time_slots(
    classified: Sequence[ClassifiedSession],
) -> tuple[TimeSlot, ...]:
    """Global histogram. ``percentage`` is each slot's share of reading time."""
    totals = _empty_totals()
    for item in classified:
        bucket = totals[item.slot]
        bucket.count += 1
        bucket.total_time += item.duration

    grand_total = sum(t.total_time for t in totals.values())
    return tuple(
        TimeSlot(
            hour=hour,
            label=SLOT_LABELS[hour],
            count=totals[hour].count,
            total_time=totals[hour].total_time,
            percentage=_share(totals[hour].total_time, grand_total),
        )
        for hour in SLOT_HOURS
    )


def build_day_time_patterns(
    classified: Sequence[ClassifiedSession],
) -> tuple[DayTimePattern, ...]:
    """Per-weekday histograms. ``percentage`` here is the slot's share of the
    weekday's session count, not of reading time."""
    by_day = {day: _empty_totals() for day in range(len(WEEKDAY_NAMES))}
    for item in classified:
        if item.weekday is None:
            continue
        bucket = by_day[item.weekday][item.slot]
        bucket.count += 1
        bucket.total_time += item.duration

    patterns: list[DayTimePattern] = []
    for day, totals in by_day.items():
        day_sessions = sum(t.count for t in totals.values())
        day_time = sum(t.total_time for t in totals.values())
        slots = tuple(
            TimeSlot(
                hour=hour,
                label=SLOT_LABELS[hour],
                count=totals[hour].count,
                total_time=totals[hour].total_time,
                percentage=_share(totals[hour].count, day_sessions),
            )
            for hour in SLOT_HOURS
        )
        patterns.append(
            DayTimePattern(
                weekday=day,
                day_name=WEEKDAY_NAMES[day],
                time_slots=slots,
                total_sessions=day_sessions,
                total_time=day_time,
            )
        )
    return tuple(patterns)


# max() returns the first maximal item, so on ties the lowest slot anchor or
# weekday index wins as long as the inputs stay in enumeration order.
def most_active_time_slot(slots: Sequence[TimeSlot]) -> TimeSlot:
    return max(slots, key=lambda slot: slot.count)


def most_active_day(patterns: Sequence[DayTimePattern]) -> DayTimePattern:
    return max(patterns, key=lambda pattern: pattern.total_sessions)


def average_session_time_by_hour(slots: Sequence[TimeSlot]) -> dict[int, float]:
    return {slot.hour: slot.total_time / slot.count for slot in slots if slot.count > 0}


def empty_analysis() -> TimePatternAnalysis:
    return TimePatternAnalysis(
        overall_time_slots=tuple(
            TimeSlot(hour=hour, label=SLOT_LABELS[hour]) for hour in SLOT_HOURS
        ),
        day_time_patterns=(),
        most_active_time_slot=TimeSlot(hour=0, label=""),
        most_active_day=DayTimePattern(weekday=0, day_name=""),
        average_session_time_by_hour={},
    )


def analyze_time_patterns(
    sessions: Sequence[ReadingSession],
    *,
    max_session_seconds: int = DEFAULT_MAX_SESSION_SECONDS,
) -> TimePatternAnalysis:
    """
    Builds the reading time-of-day / weekday analysis for one user's sessions.

    Pure and synchronous: the full snapshot is recomputed on every call.
    Sessions with an unparseable start time are left out of every aggregate;
    they never make the call fail.
    """
    if not sessions:
        return empty_analysis()

    classified = classify_sessions(sessions, max_session_seconds=max_session_seconds)
    skipped = len(sessions) - len(classified)
    if skipped:
        logger.debug(
            "Excluded %s of %s reading sessions with unparseable start time",
            skipped,
            len(sessions),
        )

    overall = build_overall_time_slots(classified)
    day_patterns = build_day_time_patterns(classified)

    return TimePatternAnalysis(
        overall_time_slots=overall,
        day_time_patterns=day_patterns,
        most_active_time_slot=most_active_time_slot(overall),
        most_active_day=most_active_day(day_patterns),
        average_session_time_by_hour=average_session_time_by_hour(overall),
    )
