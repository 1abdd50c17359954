import json
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("GHL_WEBHOOK_URL", "")

from typing import Callable, Generator, List

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.dependencies import get_db, get_relay
from app.db.base import Base
from app.main import app
from app.services.webhook_service import WebhookRelay


WEBHOOK_URL = "https://hooks.example.test/ghl"


class FakeCRM:
    """Stands in for the GHL webhook; records every request it receives."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.body = '{"status":"ok"}'
        self.content_type = "application/json"
        self.unreachable = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(
            self.status_code,
            text=self.body,
            headers={"content-type": self.content_type},
        )

    def relay(self, url=WEBHOOK_URL) -> WebhookRelay:
        return WebhookRelay(url, transport=httpx.MockTransport(self.handler))

    def payloads(self) -> list:
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> Callable[[], Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def crm() -> FakeCRM:
    return FakeCRM()


@pytest.fixture
def client(session_factory, crm, tmp_path, monkeypatch) -> Generator[TestClient, None, None]:
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    monkeypatch.setattr(settings, "STATIC_DIR", str(tmp_path))
    monkeypatch.setattr(settings, "ADMIN_USERNAME", "admin")
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", "s3cret")
    (tmp_path / "index.html").write_text("<html>dashboard</html>", encoding="utf-8")

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_relay] = lambda: crm.relay()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(client) -> dict:
    resp = client.post("/auth/login", data={"username": "admin", "password": "s3cret"})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
