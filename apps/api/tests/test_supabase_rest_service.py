from __future__ import annotations

import httpx
import pytest

from readlog.services.supabase_rest import SupabaseRest, SupabaseRestError


def _response(
    status_code: int, *, json_body=None, text: str = "error"
) -> httpx.Response:
    req = httpx.Request("GET", "https://example.supabase.co/rest/v1/reading_sessions")
    if json_body is not None:
        return httpx.Response(status_code, json=json_body, request=req)
    return httpx.Response(status_code, text=text, request=req)


def test_raise_for_error_extracts_supabase_payload() -> None:
    sb = SupabaseRest("https://example.supabase.co", "anon")
    resp = _response(
        403,
        json_body={
            "code": "42501",
            "message": "permission denied for table reading_sessions",
            "hint": "check policy",
        },
    )

    with pytest.raises(SupabaseRestError) as exc:
        sb._raise_for_error(resp)

    assert exc.value.status_code == 403
    assert exc.value.code == "42501"
    assert exc.value.hint == "check policy"
    assert "permission denied" in str(exc.value)


def test_raise_for_error_uses_text_when_json_missing() -> None:
    sb = SupabaseRest("https://example.supabase.co", "anon")
    resp = _response(500, text="upstream failure")

    with pytest.raises(SupabaseRestError) as exc:
        sb._raise_for_error(resp)

    assert exc.value.status_code == 500
    assert str(exc.value) == "upstream failure"


@pytest.mark.asyncio
async def test_select_wraps_single_object_as_list(monkeypatch: pytest.MonkeyPatch) -> None:
    sb = SupabaseRest("https://example.supabase.co", "anon")

    class _Client:
        async def get(self, *args, **kwargs):
            return _response(200, json_body={"id": "one"})

    monkeypatch.setattr("readlog.services.supabase_rest.get_http", lambda: _Client())

    rows = await sb.select(
        "reading_sessions",
        bearer_token="token",
        params={"select": "*"},
    )
    assert rows == [{"id": "one"}]


@pytest.mark.asyncio
async def test_select_all_stops_on_empty_page(monkeypatch: pytest.MonkeyPatch) -> None:
    sb = SupabaseRest("https://example.supabase.co", "anon")
    seen_offsets: list[int] = []

    class _Client:
        async def get(self, url, *, headers, params):
            seen_offsets.append(params["offset"])
            if params["offset"] == 0:
                return _response(200, json_body=[{"id": "a"}, {"id": "b"}])
            return _response(200, json_body=[])

    monkeypatch.setattr("readlog.services.supabase_rest.get_http", lambda: _Client())

    rows = await sb.select_all(
        "reading_sessions",
        bearer_token="token",
        params={"select": "*"},
        page_size=2,
    )
    assert rows == [{"id": "a"}, {"id": "b"}]
    assert seen_offsets == [0, 2]
