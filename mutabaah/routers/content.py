from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from mutabaah.content import CachedResult, ContentProviders
from mutabaah.security.context import Actor
from mutabaah.security.dependencies import get_actor

router = APIRouter(prefix="/api", tags=["content"])


def get_content(request: Request) -> ContentProviders:
    providers = getattr(request.app.state, "content", None)
    if providers is None:
        raise RuntimeError("Content providers not configured. Did app startup run?")
    return providers


def _cached_response(result: CachedResult, ttl_seconds: float) -> JSONResponse:
    return JSONResponse(
        result.data,
        headers={
            "X-Cache": "HIT" if result.hit else "MISS",
            "Cache-Control": f"public, max-age={int(ttl_seconds)}",
        },
    )


@router.get("/quran/{surah}")
def get_surah(
    surah: str,
    actor: Actor = Depends(get_actor),
    content: ContentProviders = Depends(get_content),
) -> JSONResponse:
    return _cached_response(content.quran.get_surah(surah), content.cache.ttl_seconds)


@router.get("/sholat/jadwal/{location_id}/{date}")
def get_prayer_schedule(
    location_id: str,
    date: str,
    actor: Actor = Depends(get_actor),
    content: ContentProviders = Depends(get_content),
) -> JSONResponse:
    return _cached_response(content.prayer.get_schedule(location_id, date), content.cache.ttl_seconds)


@router.get("/time")
def server_time(actor: Actor = Depends(get_actor)) -> JSONResponse:
    now = time.time()
    return JSONResponse(
        {
            "serverTime": datetime.fromtimestamp(now, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "timestamp": int(now * 1000),
        },
        headers={"Cache-Control": "no-store, must-revalidate"},
    )
