"""Hyperliquid info API client — perp market volumes.

Free API, no key required.
"""

import logging

import httpx

from errors import UpstreamError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

TOP_MARKETS = 5


async def get_meta_and_asset_contexts(client: httpx.AsyncClient, base_url: str) -> list:
    """Raw ``[meta, asset_contexts]`` pair from ``POST /info``."""
    logger.info("Fetching Hyperliquid market metadata")
    try:
        resp = await client.post(f"{base_url.rstrip('/')}/info", json={"type": "metaAndAssetCtxs"})
        resp.raise_for_status()
    except httpx.TimeoutException as e:
        raise UpstreamTimeoutError("Hyperliquid API timed out") from e
    except httpx.HTTPStatusError as e:
        raise UpstreamError(f"Hyperliquid API error: {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise UpstreamError(f"Hyperliquid API request failed: {e}") from e

    try:
        body = resp.json()
    except ValueError as e:
        raise UpstreamError("Hyperliquid API returned malformed JSON") from e
    if not isinstance(body, list) or len(body) != 2:
        raise UpstreamError("Hyperliquid API returned an unexpected payload")
    return body


def summarize_volume(meta_and_ctxs: list) -> dict:
    """Total 24h notional volume plus the top markets by volume."""
    meta, contexts = meta_and_ctxs
    universe = (meta or {}).get("universe") or []

    markets = []
    for market, ctx in zip(universe, contexts or []):
        markets.append({
            "symbol": market.get("name"),
            "volume": float((ctx or {}).get("dayNtlVlm") or 0),
        })

    markets.sort(key=lambda m: m["volume"], reverse=True)
    return {
        "volume24h": sum(m["volume"] for m in markets),
        "markets": len(universe),
        "topMarkets": markets[:TOP_MARKETS],
    }
