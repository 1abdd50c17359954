from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.security import OAuth2PasswordRequestForm

from app.core.config import settings
from app.core.dependencies import get_optional_admin
from app.core.logging import get_logger
from app.core.security import create_access_token, verify_admin_credentials


router = APIRouter(prefix="/auth", tags=["Auth"])

log = get_logger(__name__)


@router.post("/login")
def login(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
):
    username = (form_data.username or "").strip()

    if not verify_admin_credentials(username, form_data.password):
        log.warning("Admin login failed for %r", username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    access_token = create_access_token(data={"sub": username, "role": "admin"})

    # No max-age: the browser drops it when the session ends
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        access_token,
        httponly=True,
        samesite="lax",
        path="/",
    )

    log.info("Admin %s logged in", username)

    return {
        "access_token": access_token,
        "token_type": "bearer",
    }


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return {"message": "Logged out"}


@router.get("/session")
def session(admin: Optional[str] = Depends(get_optional_admin)):
    return {"authenticated": admin is not None, "username": admin}
