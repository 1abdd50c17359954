from typing import Generator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import decode_access_token
from app.db.session import SessionLocal
from app.services.attribution_service import CookieAttributionStorage
from app.services.webhook_service import WebhookRelay, get_webhook_relay


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_relay() -> WebhookRelay:
    return get_webhook_relay()


def get_attribution_storage(request: Request) -> CookieAttributionStorage:
    return CookieAttributionStorage(
        request,
        domain=settings.ATTRIBUTION_COOKIE_DOMAIN,
        max_age_days=settings.ATTRIBUTION_MAX_AGE_DAYS,
    )


def _unauthorized(detail: str = "Invalid authentication") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _session_token(request: Request, bearer: Optional[str]) -> Optional[str]:
    return bearer or request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_admin(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> str:
    token = _session_token(request, token)
    if not token:
        raise _unauthorized("Missing authentication token")

    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except JWTError:
        raise _unauthorized("Invalid authentication token")

    username = payload.get("sub")
    if not isinstance(username, str) or username != settings.ADMIN_USERNAME:
        raise _unauthorized("Invalid token payload")

    return username


def get_optional_admin(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> Optional[str]:
    try:
        return get_current_admin(request, token)
    except HTTPException:
        return None
