from __future__ import annotations

import logging
import math
from typing import Any, Iterable

from pydantic import ValidationError

from readlog.schemas.reading import ReadingSession
from readlog.services.supabase_rest import SupabaseRest

logger = logging.getLogger(__name__)


def _first(row: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return None


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _as_seconds(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return 0
        return int(parsed) if math.isfinite(parsed) else 0
    return 0


def coerce_reading_session(row: Any) -> ReadingSession | None:
    """Build a ``ReadingSession`` from a stored row.

    Rows come from two generations of the store, so both camelCase and
    snake_case keys are accepted. A start time that isn't a string is kept
    as an empty string and later excluded from the analysis like any other
    unparseable value.
    """
    if not isinstance(row, dict):
        return None
    raw_id = _first(row, "id")
    if raw_id is None:
        return None

    user_id = _first(row, "user_id", "userId")
    book_id = _first(row, "book_id", "bookId")
    try:
        return ReadingSession(
            id=str(raw_id),
            user_id=str(user_id) if user_id is not None else None,
            book_id=str(book_id) if book_id is not None else None,
            start_time=_as_text(_first(row, "start_time", "startTime")),
            end_time=_as_text(_first(row, "end_time", "endTime")),
            duration=_as_seconds(_first(row, "duration")),
            date=_as_text(_first(row, "date")),
        )
    except ValidationError:
        return None


def coerce_reading_sessions(rows: Iterable[Any]) -> list[ReadingSession]:
    out: list[ReadingSession] = []
    for index, row in enumerate(rows):
        session = coerce_reading_session(row)
        if session is None:
            logger.warning("Skipping malformed reading session row at index %s", index)
            continue
        out.append(session)
    return out


async def fetch_reading_sessions(
    sb: SupabaseRest,
    *,
    table: str,
    user_id: str,
    bearer_token: str,
    page_size: int,
) -> list[ReadingSession]:
    rows = await sb.select_all(
        table,
        bearer_token=bearer_token,
        params={
            "select": "*",
            "user_id": f"eq.{user_id}",
            "order": "id.asc",
        },
        page_size=page_size,
    )
    return coerce_reading_sessions(rows)
