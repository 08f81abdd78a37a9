from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date as Date
from datetime import datetime, timedelta, timezone
from typing import Any

# Reading times are always reported in KST; there is no per-user timezone.
TARGET_UTC_OFFSET = timedelta(hours=9)
INVALID_HOUR = -1

_MORNING = "오전"
_AFTERNOON = "오후"
_LEGACY_CLOCK_RE = re.compile(
    rf"({_MORNING}|{_AFTERNOON})\s*(\d{{1,2}})\s*:\s*(\d{{2}})\s*:\s*(\d{{2}})"
)


@dataclass(frozen=True)
class IsoStart:
    """Start time stored as an absolute instant.

    ``instant`` is held in UTC. ``local`` is shifted onto the KST wall clock
    and is only meant for reading the hour and calendar day.
    """

    instant: datetime
    local: datetime

    @property
    def hour(self) -> int:
        return self.local.hour


@dataclass(frozen=True)
class LegacyStart:
    """Start time stored as a wall-clock string that is already local."""

    hour: int


@dataclass(frozen=True)
class InvalidStart:
    raw: Any


ParsedStart = IsoStart | LegacyStart | InvalidStart


def _parse_iso_instant(text: str) -> IsoStart | None:
    candidate = text.strip()
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
        if parsed.tzinfo is None:
            instant = parsed.replace(tzinfo=timezone.utc)
        else:
            instant = parsed.astimezone(timezone.utc)
        # Instants at the very edge of the calendar can't be shifted.
        return IsoStart(instant=instant, local=instant + TARGET_UTC_OFFSET)
    except (ValueError, OverflowError):
        return None


def _parse_legacy_hour(text: str) -> int | None:
    match = _LEGACY_CLOCK_RE.search(text)
    if match is None:
        return None
    period, hour_s = match.group(1), match.group(2)
    hour = int(hour_s)
    if hour < 1 or hour > 12:
        return None
    if period == _AFTERNOON and hour != 12:
        return hour + 12
    if period == _MORNING and hour == 12:
        return 0
    return hour


def parse_start_time(value: Any) -> ParsedStart:
    """Classify a raw ``startTime`` value. Never raises.

    Strings containing ``"T"`` are ISO instants; strings carrying the Korean
    morning/afternoon marker are legacy clock values; anything else is
    invalid. The session's ``date`` and ``duration`` are not consulted.
    """
    if not isinstance(value, str):
        return InvalidStart(value)

    if "T" in value:
        iso = _parse_iso_instant(value)
        if iso is None:
            return InvalidStart(value)
        return iso

    if _MORNING in value or _AFTERNOON in value:
        hour = _parse_legacy_hour(value)
        if hour is None:
            return InvalidStart(value)
        return LegacyStart(hour)

    return InvalidStart(value)


def canonical_hour(value: Any) -> int:
    parsed = parse_start_time(value)
    if isinstance(parsed, InvalidStart):
        return INVALID_HOUR
    return parsed.hour


def _sunday_first(day: Date) -> int:
    return day.isoweekday() % 7


def local_weekday(parsed: ParsedStart, session_date: str | None) -> int | None:
    """Weekday (0=Sunday) a session belongs to, or None if it can't be told.

    ISO instants are shifted into KST before the calendar day is read.
    Legacy rows use their own ``date`` field as-is, with no shift.
    """
    if isinstance(parsed, IsoStart):
        return _sunday_first(parsed.local.date())
    if isinstance(parsed, LegacyStart):
        if not isinstance(session_date, str):
            return None
        try:
            return _sunday_first(Date.fromisoformat(session_date.strip()))
        except ValueError:
            return None
    return None
