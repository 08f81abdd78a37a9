from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration

from readlog.core.config import Settings, settings
from readlog.routes.time_patterns import router as time_patterns_router
from readlog.services.error_log import log_system_error
from readlog.services.supabase_rest import SupabaseRestError, close_http

logger = logging.getLogger(__name__)

_LOCAL_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")


def _is_production(cfg: Settings) -> bool:
    return (cfg.app_env or "").strip().lower() in {"production", "prod"}


def _configure_logging(cfg: Settings) -> None:
    level = getattr(logging, cfg.log_level.strip().upper())
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("readlog").setLevel(level)


def _init_sentry(cfg: Settings) -> None:
    if not cfg.sentry_dsn:
        return
    sentry_sdk.init(
        dsn=cfg.sentry_dsn,
        integrations=[FastApiIntegration()],
        traces_sample_rate=cfg.sentry_traces_sample_rate,
        send_default_pii=False,
        environment=cfg.app_env,
    )


def _allowed_origins(cfg: Settings) -> list[str]:
    parsed = urlparse(str(cfg.frontend_url))
    frontend = (
        f"{parsed.scheme}://{parsed.netloc}"
        if parsed.scheme and parsed.netloc
        else str(cfg.frontend_url).rstrip("/")
    )
    origins = {frontend}
    if not _is_production(cfg):
        origins.update(_LOCAL_ORIGINS)
    return sorted(origins)


async def _store_error_response(request: Request, exc: SupabaseRestError) -> JSONResponse:
    # 4xx from the store is the caller's problem; anything else is a bad gateway.
    status_code = exc.status_code if 400 <= exc.status_code < 500 else 502
    await log_system_error(
        route=str(request.url.path),
        message="Reading session store request failed",
        err=exc,
        meta={"status_code": exc.status_code, "code": exc.code},
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": {
                "message": "독서 기록을 불러오지 못했습니다.",
                "hint": exc.hint,
                "code": exc.code,
            }
        },
    )


async def _unhandled_error_response(request: Request, exc: Exception) -> JSONResponse:
    await log_system_error(
        route=str(request.url.path),
        message="Unhandled server error",
        err=exc,
        meta={"method": request.method},
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(cfg: Settings = settings) -> FastAPI:
    _configure_logging(cfg)
    _init_sentry(cfg)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        logger.info("Readlog API starting (env=%s)", cfg.app_env)
        yield
        await close_http()

    application = FastAPI(title="Readlog API", version="0.1.0", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins(cfg),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["authorization", "content-type"],
    )
    application.add_exception_handler(SupabaseRestError, _store_error_response)
    application.add_exception_handler(Exception, _unhandled_error_response)

    @application.get("/health")
    async def health() -> dict:
        return {"ok": True}

    application.include_router(time_patterns_router, prefix="/api")
    return application


app = create_app()
