from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import asyncio
import logging
import os
import time

from app.api.career_graph import router as career_graph_router
from app.api.ws_layout import router as layout_ws_router
from app.auth import get_user_id
from app.system_metrics import get_metrics_snapshot
from core.config import (
    CAREER_DATA_DIR,
    ENVIRONMENT,
    RATE_LIMIT_ENABLED,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SEC,
)

app = FastAPI(title="CareerLens – Career Graph API")
logger = logging.getLogger("app.main")


def _get_allowed_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if not raw:
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    return [item.strip() for item in raw.split(",") if item.strip()]


_allowed_origins = _get_allowed_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

_rate_limit_lock = asyncio.Lock()
_rate_limit_buckets: dict[str, dict[str, float]] = {}


def _request_identity(request: Request) -> str:
    forwarded_for = str(request.headers.get("x-forwarded-for") or "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip() or "unknown"
    if request.client and request.client.host:
        return str(request.client.host)
    return "unknown"


async def _is_rate_limited(identity: str, now_ts: float) -> tuple[bool, int]:
    async with _rate_limit_lock:
        bucket = _rate_limit_buckets.get(identity)
        if bucket is None:
            _rate_limit_buckets[identity] = {
                "window_start": now_ts,
                "count": 1,
            }
            return False, 0

        window_start = float(bucket.get("window_start") or now_ts)
        elapsed = now_ts - window_start
        if elapsed >= RATE_LIMIT_WINDOW_SEC:
            bucket["window_start"] = now_ts
            bucket["count"] = 1
            return False, 0

        count = int(bucket.get("count") or 0)
        if count >= RATE_LIMIT_MAX_REQUESTS:
            retry_after = max(1, int(RATE_LIMIT_WINDOW_SEC - elapsed))
            return True, retry_after

        bucket["count"] = count + 1

        if len(_rate_limit_buckets) > 10000:
            stale_keys = [
                key
                for key, value in _rate_limit_buckets.items()
                if now_ts - float((value or {}).get("window_start") or now_ts) > (RATE_LIMIT_WINDOW_SEC * 2)
            ]
            for key in stale_keys[:3000]:
                _rate_limit_buckets.pop(key, None)

        return False, 0


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    if not RATE_LIMIT_ENABLED:
        return await call_next(request)

    path = request.url.path
    if request.method == "OPTIONS" or path.startswith("/docs") or path.startswith("/redoc") or path.startswith("/openapi.json"):
        return await call_next(request)

    identity = _request_identity(request)
    blocked, retry_after = await _is_rate_limited(identity, time.time())
    if blocked:
        return JSONResponse(
            status_code=429,
            content={
                "detail": "Rate limit exceeded",
                "retry_after_sec": retry_after,
            },
            headers={"Retry-After": str(retry_after)},
        )

    return await call_next(request)


@app.on_event("startup")
async def startup_banner():
    logger.info("[SYSTEM] env=%s data_dir=%s", ENVIRONMENT, CAREER_DATA_DIR)
    logger.info("[SYSTEM] CORS allow_origins=%s", _allowed_origins)
    logger.info(
        "[SYSTEM] rate_limit enabled=%s window_sec=%s max_requests=%s",
        RATE_LIMIT_ENABLED,
        RATE_LIMIT_WINDOW_SEC,
        RATE_LIMIT_MAX_REQUESTS,
    )


@app.on_event("shutdown")
async def shutdown_handler():
    logger.info("[SYSTEM] shutdown complete")


@app.get("/healthz")
async def healthz():
    return {"status": "ok", "service": "career-graph"}


@app.get("/api/system/metrics")
def system_metrics_route(request: Request):
    get_user_id(request)
    return get_metrics_snapshot(extra={
        "rate_limit_buckets": len(_rate_limit_buckets),
    })


app.include_router(career_graph_router)
app.include_router(layout_ws_router)
