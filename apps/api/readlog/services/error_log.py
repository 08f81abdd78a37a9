from __future__ import annotations

import logging
import traceback
from typing import Any

from readlog.core.config import settings
from readlog.services.supabase_rest import SupabaseRest

logger = logging.getLogger(__name__)

_MAX_STACK_CHARS = 8000


async def log_system_error(
    *,
    route: str,
    message: str,
    user_id: str | None = None,
    err: BaseException | None = None,
    meta: dict[str, Any] | None = None,
) -> None:
    logger.error("%s (route=%s)", message, route, exc_info=err)

    # Best-effort audit row; never raise.
    try:
        stack = None
        if err is not None:
            stack = "".join(
                traceback.format_exception(type(err), err, err.__traceback__)
            )[:_MAX_STACK_CHARS]

        row: dict[str, Any] = {
            "route": route[:256],
            "message": message[:1000],
            "stack": stack,
            "user_id": user_id,
            "meta": meta or {},
        }
        sb = SupabaseRest(
            str(settings.supabase_url), settings.supabase_service_role_key
        )
        await sb.insert_one(
            "system_errors", bearer_token=settings.supabase_service_role_key, row=row
        )
    except Exception:
        logger.debug("Could not persist system error row", exc_info=True)
