"""FastAPI application entry point for the Lighter dashboard API."""

import logging
import sys
from contextlib import asynccontextmanager

import httpx
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from config import Settings
from errors import apply_security_headers, register_error_handlers
from services.cache import CacheStore, Memoizer
from services.clock import Clock, system_clock

load_dotenv()
settings = Settings()

# Structured logging: JSON for production, human-readable for local
if settings.is_production:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
        stream=sys.stdout,
    )
else:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings = settings,
    transport: httpx.AsyncBaseTransport | None = None,
    clock: Clock = system_clock,
) -> FastAPI:
    """Build the app around one cache and one outbound HTTP client.

    ``transport`` replaces the network layer of the shared httpx client
    (tests pass an ``httpx.MockTransport``).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        missing = settings.validate()
        if missing:
            logger.warning("Missing env vars (Dune endpoints will fail): %s", ", ".join(missing))
        async with httpx.AsyncClient(
            timeout=settings.upstream_timeout_seconds,
            transport=transport,
        ) as client:
            app.state.http_client = client
            logger.info("Lighter Dashboard API ready (environment: %s)", settings.environment)
            yield
        app.state.http_client = None

    app = FastAPI(title="Lighter Dashboard API", version="1.0.0", lifespan=lifespan)

    app.state.settings = settings
    app.state.cache = CacheStore()
    app.state.memoizer = Memoizer(app.state.cache, clock=clock)
    app.state.http_client = None

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Security headers
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        return apply_security_headers(response, settings.is_production)

    # Centralized error handlers
    register_error_handlers(app)

    from routes.health import router as health_router
    from routes.dune import router as dune_router
    from routes.exchanges import router as exchanges_router
    from routes.pages import router as pages_router

    app.include_router(health_router)
    app.include_router(dune_router)
    app.include_router(exchanges_router)
    app.include_router(pages_router)

    # Remaining assets (css, js, images) straight from disk
    if settings.public_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.public_dir), name="public")
    else:
        logger.warning("Public directory %s not found, static pages disabled", settings.public_dir)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
