from __future__ import annotations

import hashlib
import time
from collections import OrderedDict
from dataclasses import dataclass

import httpx

from readlog.core.config import settings
from readlog.services.supabase_rest import get_http


class ReaderAuthError(Exception):
    pass


@dataclass(frozen=True)
class Reader:
    user_id: str


# Cache keys are token digests, never the raw tokens.
_READERS: OrderedDict[str, tuple[float, Reader]] = OrderedDict()
_READER_TTL_SECONDS = 30.0
_READER_CACHE_SIZE = 2048


def _token_key(access_token: str) -> str:
    return hashlib.sha256(access_token.encode("utf-8")).hexdigest()


def _cached_reader(key: str, now: float) -> Reader | None:
    entry = _READERS.get(key)
    if entry is None:
        return None
    expires_at, reader = entry
    if expires_at <= now:
        del _READERS[key]
        return None
    _READERS.move_to_end(key)
    return reader


def _remember_reader(key: str, reader: Reader, now: float) -> None:
    _READERS[key] = (now + _READER_TTL_SECONDS, reader)
    _READERS.move_to_end(key)
    while len(_READERS) > _READER_CACHE_SIZE:
        _READERS.popitem(last=False)


async def resolve_reader(access_token: str, *, use_cache: bool = True) -> Reader:
    """Ask Supabase Auth who owns ``access_token``.

    Only the user id is kept; reading analytics never needs the profile.
    Raises ``ReaderAuthError`` for any token Supabase won't vouch for.
    """
    key = _token_key(access_token)
    now = time.monotonic()
    if use_cache:
        cached = _cached_reader(key, now)
        if cached is not None:
            return cached

    try:
        resp = await get_http().get(
            str(settings.supabase_url).rstrip("/") + "/auth/v1/user",
            headers={
                "apikey": settings.supabase_anon_key,
                "authorization": f"Bearer {access_token}",
                "accept": "application/json",
            },
        )
        resp.raise_for_status()
        payload = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise ReaderAuthError("Supabase Auth rejected the token") from exc

    user_id = payload.get("id") if isinstance(payload, dict) else None
    if not isinstance(user_id, str) or not user_id.strip():
        raise ReaderAuthError("Supabase Auth returned no user id")

    reader = Reader(user_id=user_id)
    if use_cache:
        _remember_reader(key, reader, now)
    return reader
