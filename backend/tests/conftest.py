"""Shared fixtures: fake clock, stubbed upstream APIs, configured test app."""

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import Settings


class FakeClock:
    """Settable stand-in for time.monotonic."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class UpstreamStub:
    """Answers outbound httpx requests by URL path and records every call."""

    def __init__(self):
        self._routes: dict[str, tuple] = {}
        self.calls: list[httpx.Request] = []

    def add(self, path: str, status: int = 200, json=None) -> None:
        self._routes[path] = ("response", status, json)

    def fail(self, path: str, exc_type: type[httpx.HTTPError]) -> None:
        self._routes[path] = ("error", exc_type, None)

    def count(self, path: str) -> int:
        return sum(1 for r in self.calls if r.url.path == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self._routes.get(request.url.path)
        if route is None:
            return httpx.Response(500, json={"error": f"no stub for {request.url.path}"})
        kind, first, body = route
        if kind == "error":
            raise first("stubbed failure", request=request)
        return httpx.Response(first, json=body)


def dune_path(query_id) -> str:
    return f"/api/v1/query/{query_id}/results"


def dune_body(rows: list[dict], execution_time_millis: int | None = 1234) -> dict:
    return {
        "execution_id": "01HX",
        "query_id": 1,
        "state": "QUERY_STATE_COMPLETED",
        "result": {
            "rows": rows,
            "metadata": {"execution_time_millis": execution_time_millis, "row_count": len(rows)},
        },
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def public_dir(tmp_path):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>Lighter Dashboard</h1>")
    (public / "stats.html").write_text("<h1>Exchange Stats</h1>")
    (public / "tvl-dashboard.html").write_text("<h1>TVL Dashboard</h1>")
    (public / "app.css").write_text("body { margin: 0; }")
    return public


@pytest.fixture
def env(public_dir) -> dict:
    return {
        "DUNE_API_KEY": "test-dune-key",
        "PUBLIC_DIR": str(public_dir),
        "USER_STATS_QUERY_ID": "777",
        "ENVIRONMENT": "test",
    }


@pytest.fixture
def settings(env) -> Settings:
    return Settings(env=env)


@pytest.fixture
def app(settings, upstream, clock):
    return create_app(settings, transport=httpx.MockTransport(upstream.handler), clock=clock)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
