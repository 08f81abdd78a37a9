from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from readlog.services.supabase_auth import ReaderAuthError, resolve_reader

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    # Forwarded to Supabase so row-level security scopes the session query.
    access_token: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def verify_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> AuthContext:
    if credentials is None or not credentials.credentials.strip():
        raise _unauthorized("Missing token")

    token = credentials.credentials.strip()
    try:
        reader = await resolve_reader(token)
    except ReaderAuthError:
        raise _unauthorized("Unauthorized")

    return AuthContext(user_id=reader.user_id, access_token=token)


AuthDep = Annotated[AuthContext, Depends(verify_token)]
