from pathlib import Path, PurePosixPath

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse

from app.core.config import settings
from app.core.dependencies import get_attribution_storage
from app.services import attribution_service
from app.services.attribution_service import CookieAttributionStorage


router = APIRouter(tags=["Dashboard"])


def _static_root() -> Path:
    return Path(settings.STATIC_DIR).resolve()


def _is_asset_path(full_path: str) -> bool:
    return "." in PurePosixPath(full_path).name


def _is_navigation(request: Request) -> bool:
    dest = request.headers.get("sec-fetch-dest")
    if dest is not None:
        return dest == "document"
    return True


def _resolve_asset(full_path: str) -> Path:
    root = _static_root()
    if full_path:
        candidate = (root / full_path).resolve()
        if candidate.is_relative_to(root) and candidate.is_file():
            return candidate
        # Missing files (favicon, stale bundles, source maps) never fall back
        if _is_asset_path(full_path):
            raise HTTPException(status_code=404, detail="Not found")

    index = root / "index.html"
    if not index.is_file():
        raise HTTPException(status_code=404, detail="Dashboard build not found")
    return index


@router.get("/api/attribution")
def get_attribution(storage: CookieAttributionStorage = Depends(get_attribution_storage)):
    state = attribution_service.load(storage)
    return {"affiliate_id": state.affiliate_id, "fingerprint": state.fingerprint}


@router.get("/{full_path:path}", include_in_schema=False)
def serve_dashboard(full_path: str, request: Request):
    if full_path == "api" or full_path.startswith("api/"):
        raise HTTPException(status_code=404, detail="Not found")

    asset = _resolve_asset(full_path)
    response = FileResponse(asset)

    # Page navigations re-derive referral attribution from the query string
    if asset == _static_root() / "index.html" and _is_navigation(request):
        storage = CookieAttributionStorage(
            request,
            response,
            domain=settings.ATTRIBUTION_COOKIE_DOMAIN,
            max_age_days=settings.ATTRIBUTION_MAX_AGE_DAYS,
        )
        attribution_service.persist(attribution_service.capture(request.query_params), storage)

    return response
