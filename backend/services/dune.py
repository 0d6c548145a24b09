"""Dune Analytics client — latest stored results for saved queries.

Reads ``GET /query/{id}/results``, which returns the most recent execution
without spending credits on a re-run.
"""

import logging
from typing import Any

import httpx

from errors import NotFoundError, UpstreamError, UpstreamTimeoutError
from services.clock import iso_now

logger = logging.getLogger(__name__)


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or resp.reason_phrase
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return resp.reason_phrase


async def fetch_latest_result(
    client: httpx.AsyncClient,
    base_url: str,
    api_key: str,
    query_id: str,
) -> dict:
    """Fetch the latest result rows of a saved Dune query.

    Returns ``{"rows", "execution_time", "query_id", "fetched_at"}`` where
    ``execution_time`` is the execution duration in ms (None if Dune omits it).
    """
    url = f"{base_url.rstrip('/')}/query/{query_id}/results"
    logger.info("Fetching Dune query: %s", query_id)
    try:
        resp = await client.get(url, headers={"X-Dune-API-Key": api_key})
    except httpx.TimeoutException as e:
        raise UpstreamTimeoutError(f"Dune query {query_id} timed out") from e
    except httpx.HTTPError as e:
        raise UpstreamError(f"Dune API request failed: {e}") from e

    if resp.status_code == 404:
        raise NotFoundError(
            f"Dune query {query_id} does not exist or has no stored results",
            error="Query not found",
        )
    if resp.status_code >= 400:
        raise UpstreamError(f"Dune API error: {resp.status_code} {_error_detail(resp)}")

    try:
        body = resp.json()
    except ValueError as e:
        raise UpstreamError("Dune API returned malformed JSON") from e
    if not isinstance(body, dict):
        raise UpstreamError("Dune API returned an unexpected payload")

    result = body.get("result") or {}
    rows = result.get("rows") or []
    metadata = result.get("metadata") or {}

    return {
        "rows": rows,
        "execution_time": metadata.get("execution_time_millis"),
        "query_id": str(query_id),
        "fetched_at": iso_now(),
    }


def _to_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: Any) -> int:
    return int(_to_float(value))


def shape_usdc_flow(rows: list[dict]) -> list[dict]:
    """Reshape daily USDC inflow/outflow rows and sort them by date."""
    flow = [
        {
            "date": row.get("period") or row.get("date") or row.get("day") or row.get("Date"),
            "amount": _to_float(row.get("amount")),
            "daily_deposit_user": _to_int(row.get("daily_deposit_user")),
            "daily_withdraw_user": _to_int(row.get("daily_withdraw_user")),
            "cumulative_amount": _to_float(row.get("cumulative_amount")),
            "cumulative_amount_m": _to_float(row.get("cumulative_amount_m")),
        }
        for row in rows
    ]
    # Dune timestamps ("2025-08-01 00:00:00.000 UTC") sort lexically
    flow.sort(key=lambda r: str(r["date"] or ""))
    return flow


def filter_rows_by_address(rows: list[dict], address: str) -> list[dict]:
    """Keep rows whose ``toAddress`` matches ``address`` case-insensitively."""
    wanted = address.lower()
    return [row for row in rows if str(row.get("toAddress") or "").lower() == wanted]
