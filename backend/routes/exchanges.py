"""Exchange routes — Lighter and Hyperliquid public APIs, no Dune key needed."""

import logging

from fastapi import APIRouter, Request

from config import Settings
from errors import failure_summary
from services import hyperliquid, lighter
from services.cache import cache_key
from services.clock import iso_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


async def _memoized(request: Request, key: str, ttl: float, producer):
    settings: Settings = request.app.state.settings
    return await request.app.state.memoizer.get_or_fetch(
        key, ttl, producer, timeout=settings.upstream_timeout_seconds
    )


@router.get("/lighter-volume")
async def lighter_volume(request: Request) -> dict:
    """24h Lighter perp volume and trade count."""
    settings: Settings = request.app.state.settings
    client = request.app.state.http_client

    async def producer() -> dict:
        stats = await lighter.get_exchange_stats(client, settings.lighter_api_url)
        return {
            "success": True,
            "data": lighter.volume_from_exchange_stats(stats),
            "source": "lighter-api",
            "timestamp": iso_now(),
        }

    with failure_summary("Failed to fetch Lighter volume data"):
        return await _memoized(
            request, cache_key("lighter-volume", "exchange-stats"), settings.cache_ttl_seconds, producer
        )


@router.get("/hyperliquid-volume")
async def hyperliquid_volume(request: Request) -> dict:
    """24h Hyperliquid notional volume across all perp markets."""
    settings: Settings = request.app.state.settings
    client = request.app.state.http_client

    async def producer() -> dict:
        raw = await hyperliquid.get_meta_and_asset_contexts(client, settings.hyperliquid_api_url)
        return {
            "success": True,
            "data": hyperliquid.summarize_volume(raw),
            "source": "hyperliquid-api",
            "timestamp": iso_now(),
        }

    with failure_summary("Failed to fetch Hyperliquid volume data"):
        return await _memoized(
            request, cache_key("hyperliquid-volume", "api"), settings.cache_ttl_seconds, producer
        )


@router.get("/lighter-exchange-stats")
async def lighter_exchange_stats(request: Request) -> dict:
    settings: Settings = request.app.state.settings
    client = request.app.state.http_client

    async def producer() -> dict:
        stats = await lighter.get_exchange_stats(client, settings.lighter_api_url)
        return lighter.summarize_exchange_stats(stats)

    with failure_summary("Failed to fetch exchange statistics"):
        return await _memoized(
            request, cache_key("lighter-exchange-stats", "latest"), settings.live_cache_ttl_seconds, producer
        )


@router.get("/lighter-account/{address}")
async def lighter_account(request: Request, address: str) -> dict:
    """Raw Lighter account data for an L1 address."""
    settings: Settings = request.app.state.settings
    client = request.app.state.http_client

    with failure_summary("Failed to fetch account data"):
        lighter.validate_address(address)

        async def producer() -> dict:
            return await lighter.get_account(client, settings.lighter_api_url, address)

        return await _memoized(
            request, cache_key("lighter-account", address.lower()), settings.live_cache_ttl_seconds, producer
        )
