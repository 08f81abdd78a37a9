from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

SLOT_WIDTH_HOURS = 2
SLOT_HOURS: tuple[int, ...] = tuple(range(0, 24, SLOT_WIDTH_HOURS))

SLOT_LABELS: Mapping[int, str] = MappingProxyType(
    {
        0: "새벽 (0-2시)",
        2: "새벽 (2-4시)",
        4: "새벽 (4-6시)",
        6: "새벽 (6-8시)",
        8: "아침 (8-10시)",
        10: "오전 (10-12시)",
        12: "점심 (12-14시)",
        14: "오후 (14-16시)",
        16: "저녁 (16-18시)",
        18: "밤 (18-20시)",
        20: "늦은 밤 (20-22시)",
        22: "심야 (22-24시)",
    }
)

WEEKDAY_NAMES: tuple[str, ...] = (
    "일요일",
    "월요일",
    "화요일",
    "수요일",
    "목요일",
    "금요일",
    "토요일",
)


def slot_for_hour(hour: int) -> int:
    """Anchor of the 2-hour slot containing ``hour`` (0-23)."""
    if not 0 <= hour <= 23:
        raise ValueError(f"hour must be 0..23, got {hour}")
    return hour - (hour % SLOT_WIDTH_HOURS)
