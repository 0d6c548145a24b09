"""Dashboard HTML pages served from the public directory."""

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

router = APIRouter()


def _page(request: Request, filename: str) -> FileResponse:
    path = request.app.state.settings.public_dir / filename
    if not path.is_file():
        raise StarletteHTTPException(status_code=404)
    return FileResponse(path, media_type="text/html")


@router.get("/", include_in_schema=False)
async def index(request: Request) -> FileResponse:
    return _page(request, "index.html")


@router.get("/stats", include_in_schema=False)
async def stats(request: Request) -> FileResponse:
    return _page(request, "stats.html")


@router.get("/tvl-dashboard", include_in_schema=False)
async def tvl_dashboard(request: Request) -> FileResponse:
    return _page(request, "tvl-dashboard.html")
