import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt

from app.core.config import settings


def verify_admin_credentials(username: str, password: str) -> bool:
    username_ok = hmac.compare_digest(
        (username or "").encode(), settings.ADMIN_USERNAME.encode()
    )
    password_ok = hmac.compare_digest(
        (password or "").encode(), settings.ADMIN_PASSWORD.encode()
    )
    return username_ok and password_ok


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
