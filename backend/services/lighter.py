"""Lighter exchange public API client (zkLighter mainnet).

No key required. Exchange-wide statistics plus per-account lookups by L1
address.
"""

import logging
import re

import httpx

from errors import InvalidAddressError, NotFoundError, UpstreamError, UpstreamTimeoutError
from services.clock import iso_now

logger = logging.getLogger(__name__)

ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

# Lighter answers 400 with this code for addresses it has never seen
ACCOUNT_NOT_FOUND_CODE = 21100


def validate_address(address: str) -> str:
    if not ADDRESS_RE.match(address):
        raise InvalidAddressError(address)
    return address


async def _get_json(client: httpx.AsyncClient, url: str, params: dict | None = None) -> tuple[httpx.Response, object]:
    try:
        resp = await client.get(url, params=params)
    except httpx.TimeoutException as e:
        raise UpstreamTimeoutError(f"Lighter API timed out: {url}") from e
    except httpx.HTTPError as e:
        raise UpstreamError(f"Lighter API request failed: {e}") from e

    try:
        body = resp.json()
    except ValueError:
        body = {}
    return resp, body


async def get_exchange_stats(client: httpx.AsyncClient, base_url: str) -> dict:
    """Raw ``/api/v1/exchangeStats`` payload."""
    logger.info("Fetching Lighter exchange statistics")
    resp, body = await _get_json(client, f"{base_url.rstrip('/')}/api/v1/exchangeStats")
    if resp.status_code >= 400:
        raise UpstreamError(f"Lighter API error: {resp.status_code} {resp.reason_phrase}")
    if not isinstance(body, dict):
        raise UpstreamError("Lighter API returned an unexpected payload")
    return body


def summarize_exchange_stats(stats: dict) -> dict:
    """Dashboard view of the exchange statistics."""
    markets = stats.get("order_book_stats") or []
    top = max(
        markets,
        key=lambda m: float(m.get("daily_quote_token_volume") or 0),
        default=None,
    )
    return {
        "daily_usd_volume": stats.get("daily_usd_volume") or 0,
        "daily_trades_count": stats.get("daily_trades_count") or 0,
        "total_markets": stats.get("total") or 0,
        "markets": markets,
        "last_updated": iso_now(),
        "top_volume_market": top,
    }


def volume_from_exchange_stats(stats: dict) -> dict:
    return {
        "volume24h": float(stats.get("daily_usd_volume") or 0),
        "trades24h": int(stats.get("daily_trades_count") or 0),
    }


async def get_account(client: httpx.AsyncClient, base_url: str, address: str) -> dict:
    """Account data for an L1 address. Raises NotFoundError for unknown addresses."""
    validate_address(address)
    logger.info("Fetching Lighter account data for address: %s", address)
    resp, body = await _get_json(
        client,
        f"{base_url.rstrip('/')}/api/v1/account",
        params={"by": "l1_address", "value": address},
    )

    if resp.status_code >= 400:
        detail = body if isinstance(body, dict) else {}
        if resp.status_code == 400 and detail.get("code") == ACCOUNT_NOT_FOUND_CODE:
            logger.info("Account not found for %s", address)
            raise NotFoundError(
                "This address has not used the Lighter protocol yet. Try a different "
                "address or create an account on Lighter first.",
                error="Account not found",
                code=ACCOUNT_NOT_FOUND_CODE,
            )
        raise UpstreamError(
            f"Lighter API error: {resp.status_code} {resp.reason_phrase} - "
            f"{detail.get('message', 'Unknown error')}"
        )

    if not isinstance(body, dict):
        raise UpstreamError("Lighter API returned an unexpected payload")
    return body
