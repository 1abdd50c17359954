from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.dependencies import get_db
from app.main import app
from app.models.client import Client


JANE = {
    "name": "Jane Doe",
    "email": "jane@x.com",
    "va_name": "VA Beta",
    "hire_type": "Full-Time",
}


def _register(client, **overrides):
    return client.post("/clients", json={**JANE, **overrides})


def test_direct_registration_has_no_affiliate(client, db, crm):
    client.get("/")

    resp = _register(client)

    assert resp.status_code == 201
    body = resp.json()
    assert body["affiliate_id"] is None
    assert body["is_hired"] is False
    assert body["is_paid"] is False
    assert body["payout_status"] == "N/A"
    assert body["payout_action"] is None

    stored = db.query(Client).one()
    assert stored.affiliate_id is None
    assert crm.payloads()[0]["event"] == "new_lead"


def test_referral_visit_stamps_affiliate(client, db, crm):
    client.get("/?am_id=aff-42&am_fingerprint=fp-9")
    client.get("/some/other/page?am_id=aff-42")

    resp = _register(client)

    assert resp.status_code == 201
    assert resp.json()["affiliate_id"] == "aff-42"
    assert resp.json()["payout_status"] == "Awaiting Hire"
    assert db.query(Client).one().affiliate_id == "aff-42"
    lead = crm.payloads()[0]
    assert lead["affiliate_id"] == "aff-42"
    assert lead["am_fingerprint"] is None


def test_later_direct_visit_drops_affiliate(client):
    client.get("/?am_id=aff-42")
    client.get("/")

    assert _register(client).json()["affiliate_id"] is None


@pytest.mark.parametrize("field", ["name", "email", "va_name", "hire_type"])
def test_blank_field_never_reaches_store(client, db, crm, field):
    client.get("/?am_id=aff-42")

    resp = _register(client, **{field: ""})

    assert resp.status_code == 422
    assert resp.json()["error"] == "Please fill in all fields."
    assert db.query(Client).count() == 0
    assert crm.requests == []


def test_lead_relay_failure_does_not_block_registration(client, db, crm):
    crm.unreachable = True

    resp = _register(client)

    assert resp.status_code == 201
    assert db.query(Client).count() == 1


def test_listing_is_newest_first(client, admin_headers, db):
    now = datetime.now(timezone.utc)
    for offset, name in ((2, "oldest"), (0, "newest"), (1, "middle")):
        db.add(
            Client(
                name=name,
                email=f"{name}@x.com",
                va_name="VA Alpha",
                hire_type="Part-Time",
                created_at=now - timedelta(minutes=offset),
            )
        )
    db.commit()

    resp = client.get("/clients", headers=admin_headers)

    assert resp.status_code == 200
    assert [c["name"] for c in resp.json()] == ["newest", "middle", "oldest"]


def test_hire_then_payout(client, admin_headers, db, crm):
    client.get("/?am_id=aff-42")
    client_id = _register(client).json()["id"]

    hired = client.post(f"/clients/{client_id}/hire", headers=admin_headers)
    assert hired.status_code == 200
    assert hired.json()["is_hired"] is True
    assert hired.json()["payout_status"] == "Ready for Payout"
    assert hired.json()["payout_action"] == "trigger_payout"

    paid = client.post(f"/clients/{client_id}/payout", headers=admin_headers)
    assert paid.status_code == 200
    assert paid.json()["message"] == "$300 payout triggered for Jane Doe"
    assert paid.json()["client"]["payout_status"] == "Paid"

    db.expire_all()
    stored = db.get(Client, client_id)
    assert stored.is_hired is True
    assert stored.is_paid is True
    assert stored.affiliate_id == "aff-42"

    events = [p["event"] for p in crm.payloads()]
    assert events == ["new_lead", "customer", "payout"]
    assert crm.payloads()[-1]["payout_amount"] == 300


def test_rejected_payout_leaves_client_unpaid(client, admin_headers, db, crm):
    client.get("/?am_id=aff-42")
    client_id = _register(client).json()["id"]
    client.post(f"/clients/{client_id}/hire", headers=admin_headers)
    crm.status_code = 500

    resp = client.post(f"/clients/{client_id}/payout", headers=admin_headers)

    assert resp.status_code == 502
    assert "GHL_WEBHOOK_URL" in resp.json()["error"]
    db.expire_all()
    assert db.get(Client, client_id).is_paid is False

    listed = client.get("/clients", headers=admin_headers).json()[0]
    assert listed["payout_status"] == "Ready for Payout"


def test_unreachable_relay_blocks_payout(client, admin_headers, db, crm):
    client.get("/?am_id=aff-42")
    client_id = _register(client).json()["id"]
    client.post(f"/clients/{client_id}/hire", headers=admin_headers)
    crm.unreachable = True

    resp = client.post(f"/clients/{client_id}/payout", headers=admin_headers)

    assert resp.status_code == 502
    db.expire_all()
    assert db.get(Client, client_id).is_paid is False


def test_payout_requires_hire(client, admin_headers, db, crm):
    client.get("/?am_id=aff-42")
    client_id = _register(client).json()["id"]
    requests_before = len(crm.requests)

    resp = client.post(f"/clients/{client_id}/payout", headers=admin_headers)

    assert resp.status_code == 409
    assert resp.json() == {"error": "Client must be hired before payout"}
    assert len(crm.requests) == requests_before
    db.expire_all()
    assert db.get(Client, client_id).is_paid is False


def test_payout_fires_only_once(client, admin_headers, crm):
    client.get("/?am_id=aff-42")
    client_id = _register(client).json()["id"]
    client.post(f"/clients/{client_id}/hire", headers=admin_headers)
    client.post(f"/clients/{client_id}/payout", headers=admin_headers)

    again = client.post(f"/clients/{client_id}/payout", headers=admin_headers)

    assert again.status_code == 409
    assert [p["event"] for p in crm.payloads()].count("payout") == 1


def test_direct_signup_is_not_payable(client, admin_headers):
    client.get("/")
    client_id = _register(client).json()["id"]
    client.post(f"/clients/{client_id}/hire", headers=admin_headers)

    resp = client.post(f"/clients/{client_id}/payout", headers=admin_headers)

    assert resp.status_code == 409


def test_repeated_hire_is_a_noop(client, admin_headers, crm):
    client.get("/?am_id=aff-42")
    client_id = _register(client).json()["id"]

    first = client.post(f"/clients/{client_id}/hire", headers=admin_headers)
    second = client.post(f"/clients/{client_id}/hire", headers=admin_headers)

    assert first.json() == second.json()
    assert [p["event"] for p in crm.payloads()].count("customer") == 1


def test_unknown_client_is_404(client, admin_headers):
    assert client.post("/clients/missing/hire", headers=admin_headers).status_code == 404
    assert client.post("/clients/missing/payout", headers=admin_headers).status_code == 404


class FailingCommitSession(Session):
    def commit(self):
        raise SQLAlchemyError("disk I/O error")


class FailingQuerySession(Session):
    def query(self, *entities, **kwargs):
        raise SQLAlchemyError("connection lost")


def _use_session_class(engine, session_class):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine, class_=session_class)

    def override_get_db():
        session = factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db


def test_list_store_failure(client, admin_headers, engine):
    _use_session_class(engine, FailingQuerySession)

    resp = client.get("/clients", headers=admin_headers)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to fetch clients: connection lost"}


def test_register_store_failure_skips_lead(client, engine, db, crm):
    client.get("/?am_id=aff-42")
    _use_session_class(engine, FailingCommitSession)

    resp = _register(client)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to register: disk I/O error"}
    assert db.query(Client).count() == 0
    assert crm.requests == []


def test_hire_store_failure_leaves_client_unhired(client, admin_headers, engine, db, crm):
    client.get("/?am_id=aff-42")
    client_id = _register(client).json()["id"]
    _use_session_class(engine, FailingCommitSession)

    resp = client.post(f"/clients/{client_id}/hire", headers=admin_headers)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to update hire status: disk I/O error"}
    db.expire_all()
    assert db.get(Client, client_id).is_hired is False
    assert "customer" not in [p["event"] for p in crm.payloads()]


def test_payout_store_failure_leaves_client_unpaid(client, admin_headers, engine, db):
    client.get("/?am_id=aff-42")
    client_id = _register(client).json()["id"]
    client.post(f"/clients/{client_id}/hire", headers=admin_headers)
    _use_session_class(engine, FailingCommitSession)

    resp = client.post(f"/clients/{client_id}/payout", headers=admin_headers)

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to update payout status: disk I/O error"}
    db.expire_all()
    stored = db.get(Client, client_id)
    assert stored.is_hired is True
    assert stored.is_paid is False
