"""Centralized configuration — all env vars in one place."""

import os
from collections.abc import Mapping
from pathlib import Path

DEFAULT_PUBLIC_DIR = Path(__file__).resolve().parent.parent / "public"


class Settings:
    """Application settings loaded from environment variables.

    Built once at startup and handed to the app factory. Tests pass a plain
    dict as ``env`` instead of touching ``os.environ``.
    """

    def __init__(self, env: Mapping[str, str] | None = None):
        env = os.environ if env is None else env

        self.cors_origins: list[str] = env.get("CORS_ORIGINS", "*").split(",")
        self.git_sha: str = env.get("GIT_SHA", "unknown")
        self.environment: str = env.get("ENVIRONMENT", env.get("NODE_ENV", "development"))
        self.port: int = int(env.get("PORT", "3000"))
        self.public_dir: Path = Path(env.get("PUBLIC_DIR", str(DEFAULT_PUBLIC_DIR)))

        # Dune Analytics
        self.dune_api_key: str | None = env.get("DUNE_API_KEY") or None
        self.dune_api_url: str = env.get("DUNE_API_URL", "https://api.dune.com/api/v1")

        # Default query IDs per endpoint; None means the caller must pass ?queryId=
        self.query_ids: dict[str, str | None] = {
            "depositors": env.get("DEPOSITORS_QUERY_ID", "5253927"),
            "tvl": env.get("TVL_QUERY_ID", "5253928"),
            "usdc-flow": env.get("USDC_FLOW_QUERY_ID", "5253905"),
            "tvl-history": env.get("TVL_HISTORY_QUERY_ID") or None,
            "depositors-history": env.get("DEPOSITORS_HISTORY_QUERY_ID") or None,
            "deposits-timeline": env.get("DEPOSITS_TIMELINE_QUERY_ID") or None,
            "user-stats": env.get("USER_STATS_QUERY_ID") or None,
        }

        # Other public APIs
        self.lighter_api_url: str = env.get("LIGHTER_API_URL", "https://mainnet.zklighter.elliot.ai")
        self.hyperliquid_api_url: str = env.get("HYPERLIQUID_API_URL", "https://api.hyperliquid.xyz")

        # Cache / upstream bounds (seconds)
        self.cache_ttl_seconds: float = float(env.get("CACHE_TTL_SECONDS", str(6 * 60 * 60)))
        self.live_cache_ttl_seconds: float = float(env.get("LIVE_CACHE_TTL_SECONDS", "60"))
        self.upstream_timeout_seconds: float = float(env.get("UPSTREAM_TIMEOUT_SECONDS", "30"))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def dune_configured(self) -> bool:
        return bool(self.dune_api_key)

    def default_query_id(self, endpoint: str) -> str | None:
        return self.query_ids.get(endpoint)

    def validate(self) -> list[str]:
        """Return list of missing required env vars for Dune-backed endpoints."""
        return [] if self.dune_api_key else ["DUNE_API_KEY"]
