from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.logging import configure_logging, get_logger
from app.db.base import Base
from app.db.session import engine
from app.models.client import Client  # noqa: F401  registers the table on Base

# Import all route modules once
from app.api.routes import (
    auth,
    clients,
    webhook,
    spa,
)

configure_logging(settings.LOG_LEVEL, json_logs=settings.LOG_JSON)

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    log.info("Database ready")
    yield


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# ===============================
# CORS CONFIGURATION
# ===============================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===============================
# ERROR ENVELOPE
# ===============================
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    missing = any(e.get("type") in ("missing", "value_error") for e in errors)
    message = "Please fill in all fields." if missing else "Invalid request"
    return JSONResponse(
        status_code=422,
        content={"error": message, "details": jsonable_encoder(errors)},
    )


# ===============================
# INCLUDE ROUTERS
# ===============================
app.include_router(auth.router)
app.include_router(clients.router)
app.include_router(webhook.router)


@app.get("/health")
def health():
    return {"status": "Backend running successfully"}


app.include_router(spa.router)  # SPA fallback must stay last


def run():
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
