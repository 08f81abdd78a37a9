from __future__ import annotations

from fastapi import APIRouter

from readlog.core.config import settings
from readlog.core.security import AuthDep
from readlog.schemas.reading import TimePatternAnalysis, TimePatternAnalyzeRequest
from readlog.services.reading_sessions import (
    coerce_reading_sessions,
    fetch_reading_sessions,
)
from readlog.services.supabase_rest import SupabaseRest
from readlog.services.time_patterns import analyze_time_patterns

router = APIRouter()


@router.get("/reading/time-patterns", response_model=TimePatternAnalysis)
async def get_time_patterns(auth: AuthDep) -> TimePatternAnalysis:
    sb = SupabaseRest(str(settings.supabase_url), settings.supabase_anon_key)
    sessions = await fetch_reading_sessions(
        sb,
        table=settings.reading_sessions_table,
        user_id=auth.user_id,
        bearer_token=auth.access_token,
        page_size=settings.reading_sessions_page_size,
    )
    return analyze_time_patterns(
        sessions, max_session_seconds=settings.reading_max_session_seconds
    )


@router.post("/reading/time-patterns/analyze", response_model=TimePatternAnalysis)
async def analyze_session_snapshot(
    body: TimePatternAnalyzeRequest, auth: AuthDep
) -> TimePatternAnalysis:
    # Preview for not-yet-imported sessions; nothing is read from or written to the store.
    sessions = coerce_reading_sessions(body.sessions)
    return analyze_time_patterns(
        sessions, max_session_seconds=settings.reading_max_session_seconds
    )
