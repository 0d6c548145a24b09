"""Custom exceptions and centralized FastAPI error handlers."""

import html
import logging
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.clock import iso_now

logger = logging.getLogger(__name__)


class DashboardError(Exception):
    """Base exception with HTTP status code and a short ``error`` summary."""

    def __init__(self, message: str, status_code: int = 500, error: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error = error


class ConfigurationError(DashboardError):
    """Missing credential (500) or query identifier (400)."""


class UpstreamError(DashboardError):
    def __init__(self, message: str, error: str | None = None):
        super().__init__(message, status_code=500, error=error)


class UpstreamTimeoutError(UpstreamError):
    pass


class NotFoundError(DashboardError):
    def __init__(self, message: str, error: str = "Not found", code: int | None = None):
        super().__init__(message, status_code=404, error=error)
        self.code = code


class InvalidAddressError(DashboardError):
    def __init__(self, address: str):
        super().__init__(
            f"Not a 0x-prefixed 40 hex character address: {address}",
            status_code=400,
            error="Invalid Ethereum address format",
        )


class FetchError(DashboardError):
    """A producer failed inside the memoizer. Keeps the cause's status code."""

    def __init__(self, key: str, reason: BaseException):
        message = str(reason) or "Unknown error occurred"
        if isinstance(reason, DashboardError):
            super().__init__(message, status_code=reason.status_code, error=reason.error)
        else:
            super().__init__(message)
        self.key = key
        self.reason = reason


@contextmanager
def failure_summary(summary: str) -> Iterator[None]:
    """Label any DashboardError raised inside the block with ``summary``.

    Errors that already carry a more specific summary (e.g. "Account not
    found") keep it.
    """
    try:
        yield
    except DashboardError as exc:
        if exc.error is None:
            exc.error = summary
        raise


def error_body(error: str, message: str, **extra) -> dict:
    return {"error": error, "message": message, **extra, "timestamp": iso_now()}


CONTENT_SECURITY_POLICY = "; ".join([
    "default-src 'self'",
    "style-src 'self' 'unsafe-inline'",
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
    "img-src 'self' data: https:",
    "connect-src 'self' https://api.dune.com",
    "frame-src 'self' https://dune.com",
])

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <title>{title}</title>
  <style>
    body {{ font-family: Arial, sans-serif; text-align: center; padding: 50px; }}
    h1 {{ color: #e74c3c; }}
    a {{ color: #3498db; text-decoration: none; }}
  </style>
</head>
<body>
  <h1>{title}</h1>
  <p>{message}</p>
  <a href="/">&larr; Back to Dashboard</a>
</body>
</html>
"""


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api")


def _is_production(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.is_production)


def apply_security_headers(response: Response, production: bool) -> Response:
    response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "SAMEORIGIN"
    response.headers["Referrer-Policy"] = "no-referrer"
    if production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(DashboardError)
    async def handle_dashboard_error(_request: Request, exc: DashboardError):
        extra = {}
        origin = exc.reason if isinstance(exc, FetchError) else exc
        if getattr(origin, "code", None) is not None:
            extra["code"] = origin.code
        if exc.status_code >= 500:
            logger.error("%s: %s", exc.error or type(exc).__name__, exc.message)
        return JSONResponse(
            error_body(exc.error or "Request failed", exc.message, **extra),
            status_code=exc.status_code,
        )

    @app.exception_handler(ValueError)
    async def handle_value_error(_request: Request, exc: ValueError):
        return JSONResponse(error_body("Invalid request", str(exc)), status_code=400)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return JSONResponse(error_body("Invalid request", details), status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if _is_api(request):
            return JSONResponse(
                error_body(str(exc.detail), f"{request.method} {request.url.path}"),
                status_code=exc.status_code,
            )
        if exc.status_code == 404:
            return HTMLResponse(
                PAGE_TEMPLATE.format(
                    title="404 - Page Not Found",
                    message="The page you're looking for doesn't exist.",
                ),
                status_code=404,
            )
        return HTMLResponse(
            PAGE_TEMPLATE.format(title=f"{exc.status_code} - Error", message=html.escape(str(exc.detail))),
            status_code=exc.status_code,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        # Served outside the middleware stack, so the security headers are set here.
        logger.exception("Unhandled error: %s", exc)
        production = _is_production(request)
        detail = "Something went wrong!" if production else str(exc)
        if _is_api(request):
            response = JSONResponse(error_body("Internal server error", detail), status_code=500)
        else:
            response = HTMLResponse(
                PAGE_TEMPLATE.format(title="500 - Server Error", message=html.escape(detail)),
                status_code=500,
            )
        return apply_security_headers(response, production)
