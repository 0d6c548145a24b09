"""Dune-backed data routes.

Every endpoint resolves a query ID (``?queryId=`` or the configured default),
memoizes the latest result under ``{endpoint}:{query_id}`` and reshapes the
rows for the dashboard pages.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from config import Settings
from errors import ConfigurationError, failure_summary
from services import dune
from services.cache import cache_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class QueryRequest(BaseModel):
    queryId: str | int | None = None


def require_dune_key(request: Request) -> Settings:
    """Fail fast when the Dune credential is missing."""
    settings: Settings = request.app.state.settings
    if not settings.dune_configured:
        raise ConfigurationError(
            "Please set DUNE_API_KEY in your environment variables",
            status_code=500,
            error="Dune API key not configured",
        )
    return settings


def _missing(query_id: str | int | None) -> bool:
    return query_id is None or str(query_id).strip() in ("", "0")


def _resolve_query_id(settings: Settings, endpoint: str, query_id: str | int | None, env_var: str) -> str:
    query_id = settings.default_query_id(endpoint) if _missing(query_id) else query_id
    if _missing(query_id):
        raise ConfigurationError(
            f"Please provide queryId parameter or set {env_var} environment variable",
            status_code=400,
            error="Missing query ID",
        )
    query_id = str(query_id).strip()
    if not (query_id.isascii() and query_id.isdigit()):
        raise ValueError(f"Query ID must be numeric, got: {query_id}")
    return query_id


async def _latest_result(request: Request, endpoint: str, query_id: str) -> dict:
    settings: Settings = request.app.state.settings
    client = request.app.state.http_client

    async def producer() -> dict:
        return await dune.fetch_latest_result(
            client, settings.dune_api_url, settings.dune_api_key, query_id
        )

    return await request.app.state.memoizer.get_or_fetch(
        cache_key(endpoint, query_id),
        settings.cache_ttl_seconds,
        producer,
        timeout=settings.upstream_timeout_seconds,
    )


def _rows_response(result: dict, data=None, **extra) -> dict:
    return {
        "success": True,
        "data": result["rows"] if data is None else data,
        **extra,
        "query_id": result["query_id"],
        "execution_time": result["execution_time"],
        "timestamp": result["fetched_at"],
    }


async def _rows_endpoint(
    request: Request,
    settings: Settings,
    endpoint: str,
    query_id: str | None,
    env_var: str,
    summary: str,
) -> dict:
    with failure_summary(summary):
        query_id = _resolve_query_id(settings, endpoint, query_id, env_var)
        result = await _latest_result(request, endpoint, query_id)
    return _rows_response(result)


@router.get("/depositors")
async def depositors(
    request: Request,
    query_id: str | None = Query(None, alias="queryId"),
    settings: Settings = Depends(require_dune_key),
) -> dict:
    """Total unique depositors."""
    return await _rows_endpoint(
        request, settings, "depositors", query_id,
        "DEPOSITORS_QUERY_ID", "Failed to fetch depositors data",
    )


@router.get("/tvl")
async def tvl(
    request: Request,
    query_id: str | None = Query(None, alias="queryId"),
    settings: Settings = Depends(require_dune_key),
) -> dict:
    """Current total value locked."""
    return await _rows_endpoint(
        request, settings, "tvl", query_id,
        "TVL_QUERY_ID", "Failed to fetch TVL data",
    )


@router.get("/tvl-history")
async def tvl_history(
    request: Request,
    query_id: str | None = Query(None, alias="queryId"),
    settings: Settings = Depends(require_dune_key),
) -> dict:
    """Daily TVL series."""
    return await _rows_endpoint(
        request, settings, "tvl-history", query_id,
        "TVL_HISTORY_QUERY_ID", "Failed to fetch TVL history",
    )


@router.get("/depositors-history")
async def depositors_history(
    request: Request,
    query_id: str | None = Query(None, alias="queryId"),
    settings: Settings = Depends(require_dune_key),
) -> dict:
    """Daily depositor count series."""
    return await _rows_endpoint(
        request, settings, "depositors-history", query_id,
        "DEPOSITORS_HISTORY_QUERY_ID", "Failed to fetch depositors history",
    )


@router.get("/deposits-timeline")
async def deposits_timeline(
    request: Request,
    query_id: str | None = Query(None, alias="queryId"),
    settings: Settings = Depends(require_dune_key),
) -> dict:
    return await _rows_endpoint(
        request, settings, "deposits-timeline", query_id,
        "DEPOSITS_TIMELINE_QUERY_ID", "Failed to fetch deposits timeline",
    )


@router.get("/usdc-flow")
async def usdc_flow(
    request: Request,
    query_id: str | None = Query(None, alias="queryId"),
    settings: Settings = Depends(require_dune_key),
) -> dict:
    """Daily USDC inflow/outflow with cumulative totals."""
    with failure_summary("Failed to fetch USDC flow data"):
        query_id = _resolve_query_id(settings, "usdc-flow", query_id, "USDC_FLOW_QUERY_ID")
        result = await _latest_result(request, "usdc-flow", query_id)

    if not result["rows"]:
        return {
            "success": False,
            "error": "No USDC flow data available",
            "data": [],
            "timestamp": result["fetched_at"],
        }

    flow = dune.shape_usdc_flow(result["rows"])
    return _rows_response(result, data=flow, total_days=len(flow))


@router.post("/query")
async def run_query(
    request: Request,
    body: QueryRequest | None = None,
    settings: Settings = Depends(require_dune_key),
) -> dict:
    """Latest results of an arbitrary saved query."""
    with failure_summary("Failed to execute query"):
        query_id = body.queryId if body is not None else None
        if _missing(query_id):
            raise ConfigurationError(
                "Please provide queryId in request body",
                status_code=400,
                error="Missing query ID",
            )
        query_id = _resolve_query_id(settings, "query", query_id, "queryId")
        result = await _latest_result(request, "query", query_id)
    return _rows_response(result)


@router.get("/user/{address}")
async def user_stats(
    request: Request,
    address: str,
    query_id: str | None = Query(None, alias="queryId"),
    settings: Settings = Depends(require_dune_key),
) -> dict:
    """Rows of the user-stats query addressed to ``address``."""
    with failure_summary("Failed to fetch user data"):
        query_id = _resolve_query_id(settings, "user-stats", query_id, "USER_STATS_QUERY_ID")
        result = await _latest_result(request, "user-stats", query_id)

    rows = dune.filter_rows_by_address(result["rows"], address)
    return _rows_response(result, data=rows, user_address=address)
