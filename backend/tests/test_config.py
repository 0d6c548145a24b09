"""Unit tests for Settings."""

from pathlib import Path

from config import DEFAULT_PUBLIC_DIR, Settings


def test_defaults():
    settings = Settings(env={})

    assert settings.dune_api_key is None
    assert settings.dune_configured is False
    assert settings.port == 3000
    assert settings.environment == "development"
    assert settings.is_production is False
    assert settings.cache_ttl_seconds == 6 * 60 * 60
    assert settings.live_cache_ttl_seconds == 60
    assert settings.upstream_timeout_seconds == 30
    assert settings.public_dir == DEFAULT_PUBLIC_DIR
    assert settings.default_query_id("depositors") == "5253927"
    assert settings.default_query_id("tvl") == "5253928"
    assert settings.default_query_id("usdc-flow") == "5253905"
    assert settings.default_query_id("user-stats") is None
    assert settings.default_query_id("unknown") is None
    assert settings.validate() == ["DUNE_API_KEY"]


def test_overrides():
    settings = Settings(env={
        "DUNE_API_KEY": "k",
        "DEPOSITORS_QUERY_ID": "1",
        "TVL_HISTORY_QUERY_ID": "2",
        "PORT": "8080",
        "CACHE_TTL_SECONDS": "120",
        "CORS_ORIGINS": "https://a.example,https://b.example",
        "PUBLIC_DIR": "/srv/public",
    })

    assert settings.validate() == []
    assert settings.default_query_id("depositors") == "1"
    assert settings.default_query_id("tvl-history") == "2"
    assert settings.port == 8080
    assert settings.cache_ttl_seconds == 120
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
    assert settings.public_dir == Path("/srv/public")


def test_empty_key_counts_as_missing():
    settings = Settings(env={"DUNE_API_KEY": ""})

    assert settings.dune_configured is False
    assert settings.validate() == ["DUNE_API_KEY"]


def test_node_env_fallback():
    assert Settings(env={"NODE_ENV": "production"}).is_production is True
    assert Settings(env={"NODE_ENV": "production", "ENVIRONMENT": "staging"}).environment == "staging"
