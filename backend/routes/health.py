"""Health and readiness check routes."""

import logging

from fastapi import APIRouter, Request

from services.clock import iso_now

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "Lighter Dashboard API"


@router.get("/ready")
async def ready(request: Request) -> dict:
    """Lightweight readiness check — no external calls."""
    return {"status": "ok", "service": SERVICE_NAME, "commit": request.app.state.settings.git_sha}


@router.get("/api/health")
async def health(request: Request) -> dict:
    """Reports whether the Dune credential is configured and cache usage."""
    state = request.app.state
    return {
        "status": "OK",
        "timestamp": iso_now(),
        "service": SERVICE_NAME,
        "duneApiConfigured": state.settings.dune_configured,
        "cache": {
            "entries": len(state.cache),
            "hits": state.memoizer.hits,
            "misses": state.memoizer.misses,
        },
    }
